"""
Shared fixtures for the triage tests.

Generators are scripted fakes; the durable store runs on in-memory SQLite.
"""
from collections import deque
from typing import Callable, List, Optional

import pytest
from sqlalchemy.pool import StaticPool

from triage.db import make_engine, make_session_factory
from triage.dialogue.schema import CompiledNote, NoteSubmission, ConversationEntry, OPENING_QUESTION
from triage.errors import GenerationError, SubmissionError
from triage.llm import TextGenerator
from triage.services.note_store import LocalNoteStore, NoteStore, SqlNoteStore, init_db


NOTE_JSON = (
    '{"subjective": "Headache for two days.", '
    '"objective": "No objective data collected by this application. Physical examination '
    'and vital signs should be obtained during clinical assessment.", '
    '"assessment": "Likely tension headache.", '
    '"plan": "See a physician."}'
)


class ScriptedGenerator(TextGenerator):
    """
    Answers each prompt kind from its own queue.

    Queue items are either strings or exceptions to raise. Exhausted
    question queues produce numbered questions; exhausted decision queues
    say "enough information".
    """

    def __init__(
        self,
        questions: Optional[List] = None,
        decisions: Optional[List] = None,
        notes: Optional[List] = None,
        on_call: Optional[Callable[[str, str], None]] = None,
    ):
        self.questions = deque(questions or [])
        self.decisions = deque(decisions or [])
        self.notes = deque(notes or [NOTE_JSON])
        self.on_call = on_call
        self.prompts: List[tuple] = []

    @staticmethod
    def kind_of(prompt: str) -> str:
        if '"needsMoreInfo"' in prompt:
            return "decision"
        if "SOAP note" in prompt:
            return "note"
        return "question"

    def calls(self, kind: str) -> List[str]:
        return [prompt for k, prompt in self.prompts if k == kind]

    def generate(self, prompt: str) -> str:
        kind = self.kind_of(prompt)
        self.prompts.append((kind, prompt))
        if self.on_call is not None:
            self.on_call(kind, prompt)

        if kind == "question":
            item = self.questions.popleft() if self.questions else (
                f"Follow-up question {len(self.calls('question'))}?"
            )
        elif kind == "decision":
            item = self.decisions.popleft() if self.decisions else '{"needsMoreInfo": false, "reasoning": "enough"}'
        else:
            item = self.notes.popleft() if self.notes else NOTE_JSON

        if isinstance(item, Exception):
            raise item
        return item


class FailingNoteStore(NoteStore):
    def __init__(self):
        super().__init__()
        self.attempts = 0

    def create_note(self, record: NoteSubmission) -> str:
        self.attempts += 1
        raise SubmissionError("durable store unreachable")

    def list_notes(self):
        return []


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def sql_engine():
    engine = make_engine(
        "sqlite://",
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine):
    return SqlNoteStore(make_session_factory(sql_engine))


@pytest.fixture
def local_store(tmp_path):
    return LocalNoteStore(tmp_path / "fallback" / "notes.jsonl")


@pytest.fixture
def failing_store():
    return FailingNoteStore()


@pytest.fixture
def make_record():
    def _make(user_id: str = "user-1", complaint: str = "headache") -> NoteSubmission:
        return NoteSubmission(
            user_id=user_id,
            initial_complaint=complaint,
            transcript=[
                ConversationEntry(question=OPENING_QUESTION, answer=complaint),
                ConversationEntry(question="How long?", answer="two days"),
            ],
            note=CompiledNote(subjective=f"{complaint} for two days", plan="See a physician."),
        )
    return _make


def generation_error() -> GenerationError:
    return GenerationError("service unavailable")


def find_note(store: NoteStore, note_id: str):
    return next((note for note in store.list_notes() if note.id == note_id), None)
