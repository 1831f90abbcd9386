# triage/services/note_submission.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from triage.dialogue.parser import parse_note
from triage.dialogue.schema import NoteSubmission, SubmissionResult
from triage.dialogue.screens import StorageTier
from triage.dialogue.state import SessionState
from triage.identity import IdentityProvider
from triage.services.note_store import NoteStore

logger = logging.getLogger(__name__)


class NoteSubmissionAdapter:
    """
    Saves finished sessions with a two-tier write policy:
      - the durable (primary) store
      - the local fallback store if the primary write fails

    `submit` never raises; the returned SubmissionResult says which tier
    took the note.
    """

    def __init__(
        self,
        primary: NoteStore,
        fallback: NoteStore,
        identity: IdentityProvider,
        clock: Callable[[], float] = time.time,
    ):
        self.primary = primary
        self.fallback = fallback
        self.identity = identity
        self._clock = clock
        self._demo_user_id: Optional[str] = None

    def resolve_user_id(self) -> str:
        """
        Current identity, else a fresh sign-in, else a demo id for this adapter.
        """
        try:
            user_id = self.identity.current_identity()
        except Exception as exc:
            logger.warning("Could not read current identity (%s); signing in again.", exc)
            user_id = None
        if user_id:
            return user_id
        try:
            user_id = self.identity.establish_identity()
        except Exception as exc:
            logger.warning("Authentication failed (%s); running in demo mode.", exc)
            user_id = None
        if user_id:
            return user_id
        return self.demo_user_id()

    def demo_user_id(self) -> str:
        if self._demo_user_id is None:
            self._demo_user_id = f"demo-user-{int(self._clock() * 1000)}"
        return self._demo_user_id

    def build_record(self, session: SessionState) -> NoteSubmission:
        note = session.note or parse_note("", session.complaint, session.transcript)
        return NoteSubmission(
            user_id=self.resolve_user_id(),
            initial_complaint=session.complaint,
            transcript=list(session.transcript),
            note=note,
        )

    def submit(self, session: SessionState) -> SubmissionResult:
        try:
            record = self.build_record(session)
        except Exception:
            logger.exception("Could not package the triage note for submission")
            return SubmissionResult(
                note_id=f"unsaved-{uuid4().hex}",
                user_id=self.demo_user_id(),
                tier=StorageTier.UNSAVED,
            )

        try:
            note_id = self.primary.create_note(record)
            return SubmissionResult(note_id=note_id, user_id=record.user_id, tier=StorageTier.PRIMARY)
        except Exception as exc:
            logger.warning("Error saving triage note (%s); falling back to local storage.", exc)

        try:
            note_id = self.fallback.create_note(record)
            return SubmissionResult(note_id=note_id, user_id=record.user_id, tier=StorageTier.FALLBACK)
        except Exception:
            logger.exception("Local fallback storage failed; note for %s was not saved", record.user_id)

        return SubmissionResult(
            note_id=f"unsaved-{uuid4().hex}",
            user_id=record.user_id,
            tier=StorageTier.UNSAVED,
        )
