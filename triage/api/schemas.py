# triage/api/schemas.py
from __future__ import annotations

from typing import Optional, List

from pydantic import BaseModel

from triage.dialogue.schema import CompiledNote, ConversationEntry, StoredNote, SubmissionResult
from triage.dialogue.state import SessionState


class GenerateRequest(BaseModel):
    prompt: str = ""


class GenerateResponse(BaseModel):
    text: str


class StartTriageRequest(BaseModel):
    complaint: str


class AnswerRequest(BaseModel):
    answer: str


class SessionView(BaseModel):
    session_id: str
    screen: str
    turn_count: int
    max_turns: Optional[int]
    pending_question: Optional[str]
    # answered entries only; the pending one is in pending_question
    transcript: List[ConversationEntry]
    note: Optional[CompiledNote]
    busy: bool
    last_error: Optional[str]
    submission: Optional[SubmissionResult]

    @classmethod
    def from_state(cls, session_id: str, state: SessionState) -> "SessionView":
        pending = state.pending_entry
        turn_count, max_turns = state.progress
        return cls(
            session_id=session_id,
            screen=state.screen.value,
            turn_count=turn_count,
            max_turns=max_turns,
            pending_question=pending.question if pending is not None else None,
            transcript=state.answered_transcript,
            note=state.note,
            busy=state.busy,
            last_error=state.last_error,
            submission=state.submission,
        )


class NoteListResponse(BaseModel):
    notes: List[StoredNote]


class NoteStatsResponse(BaseModel):
    total_notes: int
    today_notes: int
    unique_users: int
