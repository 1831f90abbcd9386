# triage/services/note_store.py
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List
from uuid import uuid4

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from triage.db import Base, SessionLocal, db_session, engine
from triage.dialogue.schema import ConversationEntry, NoteSubmission, StoredNote
from triage.errors import NoteStoreError, SubmissionError
from triage.models import TriageNote

logger = logging.getLogger(__name__)

NotesCallback = Callable[[List[StoredNote]], None]
Unsubscribe = Callable[[], None]


def init_db(bind=None) -> None:
    """
    Create the note tables. Call this once at startup.
    """
    Base.metadata.create_all(bind=bind or engine)


class NoteStore(ABC):
    """
    Write-once storage for finished triage notes.

    Subscribers receive the full note set, newest first, when they subscribe
    and again after every successful write. A read failure is delivered as
    an empty list rather than raised.
    """

    def __init__(self) -> None:
        self._subscribers: List[NotesCallback] = []
        self._subscribers_lock = threading.Lock()

    @abstractmethod
    def create_note(self, record: NoteSubmission) -> str:
        """
        Persist the record and return its new id.
        Raises SubmissionError if the write is rejected.
        """
        ...

    @abstractmethod
    def list_notes(self) -> List[StoredNote]:
        """
        All notes, newest first. Raises NoteStoreError if the store is unreadable.
        """
        ...

    def subscribe(self, on_notes: NotesCallback) -> Unsubscribe:
        with self._subscribers_lock:
            self._subscribers.append(on_notes)
        self._deliver(on_notes)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if on_notes in self._subscribers:
                    self._subscribers.remove(on_notes)

        return unsubscribe

    def _publish(self) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            self._deliver(callback)

    def _deliver(self, callback: NotesCallback) -> None:
        # Runs after a committed write: nothing here may fail the writer.
        try:
            notes = self.list_notes()
        except NoteStoreError as exc:
            logger.error("Error listening to triage notes: %s", exc)
            notes = []
        except Exception:
            logger.exception("Unexpected error reading triage notes for subscribers")
            notes = []
        try:
            callback(notes)
        except Exception:
            logger.exception("Triage note subscriber %r failed", callback)

    @staticmethod
    def _check_identity(record: NoteSubmission) -> None:
        if not record.user_id:
            raise SubmissionError("User not authenticated")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlNoteStore(NoteStore):
    """
    Durable note store backed by the `triage_notes` table.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        super().__init__()
        self._session_factory = session_factory

    def create_note(self, record: NoteSubmission) -> str:
        self._check_identity(record)
        try:
            with db_session(self._session_factory) as session:
                row = TriageNote(
                    user_id=record.user_id,
                    initial_complaint=record.initial_complaint,
                    transcript=[entry.model_dump() for entry in record.transcript],
                    **record.note.model_dump(),
                )
                session.add(row)
                session.flush()  # to get row.id
                note_id = row.id
        except SQLAlchemyError as exc:
            raise SubmissionError(f"Error saving triage note: {exc}") from exc

        logger.info("Saved triage note %s for user %s", note_id, record.user_id)
        self._publish()
        return note_id

    def list_notes(self) -> List[StoredNote]:
        stmt = select(TriageNote).order_by(TriageNote.created_at.desc())
        try:
            with db_session(self._session_factory) as session:
                return [self._to_stored(row) for row in session.scalars(stmt)]
        except (SQLAlchemyError, SchemaValidationError) as exc:
            raise NoteStoreError(f"Error reading triage notes: {exc}") from exc

    @staticmethod
    def _to_stored(row: TriageNote) -> StoredNote:
        return StoredNote(
            id=row.id,
            user_id=row.user_id,
            initial_complaint=row.initial_complaint,
            transcript=[ConversationEntry.model_validate(entry) for entry in row.transcript or []],
            subjective=row.subjective,
            objective=row.objective,
            assessment=row.assessment,
            plan=row.plan,
            created_at=_as_utc(row.created_at),
        )


class LocalNoteStore(NoteStore):
    """
    Fallback store: one JSON object per line in a local file.
    Appends are serialized with a lock; the file is never rewritten.
    """

    def __init__(self, path: Path | str):
        super().__init__()
        self._path = Path(path)
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def create_note(self, record: NoteSubmission) -> str:
        self._check_identity(record)
        stored = StoredNote(
            id=f"local-{uuid4().hex}",
            user_id=record.user_id,
            initial_complaint=record.initial_complaint,
            transcript=record.transcript,
            created_at=datetime.now(timezone.utc),
            **record.note.model_dump(),
        )
        try:
            with self._write_lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(stored.model_dump_json() + "\n")
        except OSError as exc:
            raise SubmissionError(f"Error writing {self._path}: {exc}") from exc

        logger.info("Saved triage note %s to local fallback storage", stored.id)
        self._publish()
        return stored.id

    def list_notes(self) -> List[StoredNote]:
        if not self._path.exists():
            return []
        try:
            with self._write_lock:
                lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise NoteStoreError(f"Error reading {self._path}: {exc}") from exc

        notes: List[StoredNote] = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                notes.append(StoredNote.model_validate_json(line))
            except SchemaValidationError as exc:
                logger.warning("Skipping corrupt line %d in %s: %s", lineno, self._path, exc)
        notes.sort(key=lambda note: note.created_at, reverse=True)
        return notes
