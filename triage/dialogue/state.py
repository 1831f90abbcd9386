# triage/dialogue/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from triage.dialogue.screens import Screen
from triage.dialogue.schema import CompiledNote, ConversationEntry, SubmissionResult


@dataclass
class SessionState:
    """
    In-memory representation of one triage session.

    transcript[0] is always the opening question with the complaint as its
    answer; later entries are follow-ups, and only the last may be pending.
    """

    screen: Screen = Screen.INTAKE
    # 1-based index of the most recently issued follow-up question
    turn_count: int = 1
    max_turns: Optional[int] = None
    complaint: str = ""
    transcript: List[ConversationEntry] = field(default_factory=list)
    note: Optional[CompiledNote] = None
    busy: bool = False
    last_error: Optional[str] = None

    # Filled once the finished session has been handed to a note store
    submission: Optional[SubmissionResult] = None

    @property
    def pending_entry(self) -> Optional[ConversationEntry]:
        if not self.transcript:
            return None
        last = self.transcript[-1]
        return last if last.is_pending else None

    @property
    def answered_follow_ups(self) -> int:
        return sum(1 for entry in self.transcript[1:] if not entry.is_pending)

    @property
    def answered_transcript(self) -> List[ConversationEntry]:
        return [entry for entry in self.transcript if not entry.is_pending]

    @property
    def progress(self) -> Tuple[int, Optional[int]]:
        return self.turn_count, self.max_turns
