# triage/models.py
from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    DateTime,
    String,
    Text,
    JSON,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from triage.db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TriageNote(Base):
    """
    A finished triage session: the transcript plus its compiled SOAP note.
    Rows are written once and never updated.
    """
    __tablename__ = "triage_notes"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    initial_complaint: Mapped[str] = mapped_column(Text, nullable=False)
    # list of {"question": ..., "answer": ...}
    transcript: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    subjective: Mapped[str] = mapped_column(Text, nullable=False, default="")
    objective: Mapped[str] = mapped_column(Text, nullable=False)
    assessment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    plan: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (
        CheckConstraint("user_id <> ''", name="ck_triage_notes_user_id_set"),
    )
