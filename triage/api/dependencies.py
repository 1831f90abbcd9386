# triage/api/dependencies.py
from __future__ import annotations

from functools import lru_cache

from triage.config import get_settings
from triage.dialogue.policy import SufficiencyPolicy
from triage.identity import TokenOrAnonymousIdentityProvider
from triage.llm import OpenAILLMClient, TextGenerator
from triage.services import (
    LocalNoteStore,
    NoteStore,
    NoteSubmissionAdapter,
    ReviewBoard,
    SqlNoteStore,
    TriageSessionService,
)


@lru_cache(maxsize=1)
def get_text_generator() -> TextGenerator:
    return OpenAILLMClient()


@lru_cache(maxsize=1)
def get_note_store() -> NoteStore:
    return SqlNoteStore()


@lru_cache(maxsize=1)
def get_fallback_store() -> NoteStore:
    return LocalNoteStore(get_settings().fallback_store_path)


@lru_cache(maxsize=1)
def get_triage_service() -> TriageSessionService:
    submitter = NoteSubmissionAdapter(
        primary=get_note_store(),
        fallback=get_fallback_store(),
        identity=TokenOrAnonymousIdentityProvider.from_settings(),
    )
    return TriageSessionService(
        generator=get_text_generator(),
        submitter=submitter,
        policy=SufficiencyPolicy.from_settings(get_settings()),
    )


@lru_cache(maxsize=1)
def get_review_board() -> ReviewBoard:
    return ReviewBoard(get_note_store())
