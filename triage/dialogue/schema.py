# triage/dialogue/schema.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, field_validator

from triage.dialogue.screens import StorageTier


OPENING_QUESTION = "What brings you here today?"

OBJECTIVE_DISCLAIMER = (
    "No objective data collected by this application. Physical examination "
    "and vital signs should be obtained during clinical assessment."
)

DEFAULT_PLAN = (
    "Recommend physician evaluation for further assessment and management."
)


class ConversationEntry(BaseModel):
    """
    One question and the patient's answer to it.
    An empty answer means the question is still waiting for a reply.
    """

    question: str
    answer: str = ""

    @property
    def is_pending(self) -> bool:
        return self.answer == ""


class CompiledNote(BaseModel):
    """
    The four-section SOAP note compiled at the end of a triage session.
    """

    subjective: str = ""
    objective: str = OBJECTIVE_DISCLAIMER
    assessment: str = ""
    plan: str = ""

    model_config = ConfigDict(frozen=True)


class ContinuationDecision(BaseModel):
    """
    The model's verdict on whether the interview has gathered enough detail.

    Accepts the camelCase keys we ask the model for as well as snake_case.
    """

    needs_more_info: StrictBool = Field(
        validation_alias=AliasChoices("needsMoreInfo", "needs_more_info"),
    )
    reasoning: str = Field("", validation_alias=AliasChoices("reasoning", "reason"))
    suggested_focus: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("suggestedFocus", "suggested_focus"),
    )

    model_config = {
        "extra": "ignore",
    }

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_reasoning(cls, value):
        return "" if value is None else value


class NoteSubmission(BaseModel):
    """
    What the submission adapter hands to a note store.
    Identity and timestamp are assigned by the store.
    """

    user_id: str
    initial_complaint: str
    transcript: List[ConversationEntry]
    note: CompiledNote


class StoredNote(CompiledNote):
    id: str
    user_id: str
    initial_complaint: str
    transcript: List[ConversationEntry] = Field(default_factory=list)
    created_at: datetime


class SubmissionResult(BaseModel):
    note_id: str
    user_id: str
    tier: StorageTier

    model_config = ConfigDict(frozen=True)
