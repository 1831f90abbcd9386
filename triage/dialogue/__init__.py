# triage/dialogue/__init__.py
from .schema import CompiledNote, ContinuationDecision, ConversationEntry, StoredNote
from .state import SessionState
from .screens import Screen
from .policy import SufficiencyPolicy
from .controller import TriageController, StepResult

__all__ = [
    "CompiledNote",
    "ContinuationDecision",
    "ConversationEntry",
    "StoredNote",
    "SessionState",
    "Screen",
    "SufficiencyPolicy",
    "TriageController",
    "StepResult",
]
