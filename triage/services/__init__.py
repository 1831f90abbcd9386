# triage/services/__init__.py
from .note_store import NoteStore, SqlNoteStore, LocalNoteStore, init_db
from .note_submission import NoteSubmissionAdapter
from .review import ReviewBoard, NoteStats, compute_note_stats
from .triage_session import TriageSessionService, UnknownSessionError

__all__ = [
    "NoteStore",
    "SqlNoteStore",
    "LocalNoteStore",
    "init_db",
    "NoteSubmissionAdapter",
    "ReviewBoard",
    "NoteStats",
    "compute_note_stats",
    "TriageSessionService",
    "UnknownSessionError",
]
