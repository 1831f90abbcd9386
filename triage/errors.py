# triage/errors.py
from __future__ import annotations


class TriageError(Exception):
    """
    Base class for errors surfaced by the triage core.

    `user_message` is the text shown to the patient; the exception's own
    message may carry more detail for logs.
    """

    user_message: str = "Something went wrong"

    def __init__(self, detail: str | None = None, user_message: str | None = None):
        if user_message is not None:
            self.user_message = user_message
        super().__init__(detail or self.user_message)


class ValidationError(TriageError):
    """Empty complaint / answer or an operation not allowed in the current screen."""

    user_message = "Please provide a response"


class GenerationError(TriageError):
    """The text-generation call failed or returned unusable text."""

    user_message = "Failed to communicate with AI service"


class NoteStoreError(TriageError):
    """A note store could not be read or written."""

    user_message = "Note storage is unavailable"


class SubmissionError(NoteStoreError):
    """A note store rejected a write."""

    user_message = "Failed to save assessment"


class IdentityError(TriageError):
    """No identity could be established for attribution."""

    user_message = "Authentication failed"
