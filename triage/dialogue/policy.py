# triage/dialogue/policy.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from triage.config import Settings

DEFAULT_MAX_TURNS = 3


class PolicyMode(str, Enum):
    DYNAMIC = "dynamic"
    FIXED = "fixed"


@dataclass(frozen=True)
class SufficiencyPolicy:
    """
    Decides when to stop asking follow-up questions.

    - FIXED: ask exactly `max_turns` follow-ups.
    - DYNAMIC: ask the model after every answer. If `max_turns` is also set
      it is a hard stop, whatever the model says.
    """

    mode: PolicyMode = PolicyMode.DYNAMIC
    max_turns: Optional[int] = None

    def __post_init__(self) -> None:
        if self.mode == PolicyMode.FIXED and self.max_turns is None:
            raise ValueError("A fixed sufficiency policy needs max_turns")
        if self.max_turns is not None and self.max_turns < 1:
            raise ValueError(f"max_turns must be at least 1, got {self.max_turns}")

    @classmethod
    def fixed(cls, max_turns: int = DEFAULT_MAX_TURNS) -> "SufficiencyPolicy":
        return cls(mode=PolicyMode.FIXED, max_turns=max_turns)

    @classmethod
    def dynamic(cls, turn_cap: Optional[int] = None) -> "SufficiencyPolicy":
        return cls(mode=PolicyMode.DYNAMIC, max_turns=turn_cap)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SufficiencyPolicy":
        if settings.sufficiency_policy == PolicyMode.FIXED.value:
            return cls.fixed(settings.max_turns or DEFAULT_MAX_TURNS)
        return cls.dynamic(settings.max_turns)

    @property
    def asks_model(self) -> bool:
        return self.mode == PolicyMode.DYNAMIC

    def cap_reached(self, turn_count: int) -> bool:
        return self.max_turns is not None and turn_count >= self.max_turns
