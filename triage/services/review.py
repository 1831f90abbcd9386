# triage/services/review.py
from __future__ import annotations

import threading
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel

from triage.dialogue.schema import StoredNote
from triage.services.note_store import NoteStore


class NoteStats(BaseModel):
    total_notes: int
    today_notes: int
    unique_users: int


def compute_note_stats(notes: Sequence[StoredNote], now: Optional[datetime] = None) -> NoteStats:
    """
    `today_notes` counts notes created on the current local calendar day.
    """
    today = (now or datetime.now()).astimezone().date()
    return NoteStats(
        total_notes=len(notes),
        today_notes=sum(1 for note in notes if note.created_at.astimezone().date() == today),
        unique_users=len({note.user_id for note in notes}),
    )


class ReviewBoard:
    """
    Live view of the note store for the physician review screen.
    Holds the latest snapshot pushed by the store's subscription.
    """

    def __init__(self, store: NoteStore):
        self._lock = threading.Lock()
        self._notes: List[StoredNote] = []
        self._unsubscribe = store.subscribe(self._on_notes)

    def _on_notes(self, notes: List[StoredNote]) -> None:
        with self._lock:
            self._notes = list(notes)

    def notes(self) -> List[StoredNote]:
        with self._lock:
            return list(self._notes)

    def get(self, note_id: str) -> Optional[StoredNote]:
        return next((note for note in self.notes() if note.id == note_id), None)

    def stats(self, now: Optional[datetime] = None) -> NoteStats:
        return compute_note_stats(self.notes(), now=now)

    def close(self) -> None:
        self._unsubscribe()
