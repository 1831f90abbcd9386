# triage/dialogue/parser.py
"""
Turns untrusted model output into typed results.

Decisions and notes never raise from here: anything that cannot be decoded
degrades to a deterministic fallback value.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Dict, Optional, Sequence

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as SchemaValidationError

from triage.dialogue.schema import (
    DEFAULT_PLAN,
    OBJECTIVE_DISCLAIMER,
    CompiledNote,
    ContinuationDecision,
    ConversationEntry,
)

logger = logging.getLogger(__name__)

# Below this many answered follow-ups an undecodable decision means "keep asking".
FALLBACK_MIN_ANSWERS = 4
FALLBACK_REASONING = "parse failure, using fallback"
FALLBACK_FOCUS = "general clinical details"

NOTE_SECTIONS = ("subjective", "objective", "assessment", "plan")

_FENCE_OPEN = re.compile(r"^```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_SECTION_SPLIT = re.compile(
    r"\n(?=[ \t#*]*(?:subjective|objective|assessment|plan)\b)",
    re.IGNORECASE,
)
_SECTION_HEAD = re.compile(
    r"^[ \t#*]*(subjective|objective|assessment|plan)\b[ \t*]*:?[ \t*]*",
    re.IGNORECASE,
)


class _NoteFields(BaseModel):
    subjective: Optional[str] = None
    objective: Optional[str] = None
    assessment: Optional[str] = None
    plan: Optional[str] = None

    model_config = {
        "extra": "ignore",
    }

    @field_validator(*NOTE_SECTIONS, mode="before")
    @classmethod
    def _join_lists(cls, value):
        # Models sometimes return a section as a list of bullet strings
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return "\n".join(value)
        return value


def strip_code_fences(raw: str) -> str:
    """
    Remove a leading ``` line (with or without a language tag) and a
    trailing ``` line, if present.
    """
    text = raw.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _decode_object(raw: str) -> dict:
    data = json.loads(strip_code_fences(raw))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_question(raw: str) -> str:
    return raw.strip()


def fallback_decision(answered_follow_ups: int) -> ContinuationDecision:
    return ContinuationDecision(
        needs_more_info=answered_follow_ups < FALLBACK_MIN_ANSWERS,
        reasoning=FALLBACK_REASONING,
        suggested_focus=FALLBACK_FOCUS,
    )


def parse_decision(raw: str, answered_follow_ups: int) -> ContinuationDecision:
    try:
        return ContinuationDecision.model_validate(_decode_object(raw))
    except (ValueError, SchemaValidationError) as exc:
        # json.JSONDecodeError is a ValueError
        logger.warning("Could not decode continuation decision (%s); using fallback.", exc)
        return fallback_decision(answered_follow_ups)


def scan_note_sections(raw: str) -> Dict[str, str]:
    """
    Recover sections from plain text such as:

      SUBJECTIVE: ...
      OBJECTIVE: ...
      ASSESSMENT: ...
      PLAN: ...

    Returns only the sections that were found with non-empty content.
    """
    found: Dict[str, str] = {}
    for chunk in _SECTION_SPLIT.split(strip_code_fences(raw)):
        chunk = chunk.strip()
        match = _SECTION_HEAD.match(chunk)
        if match is None:
            continue
        content = chunk[match.end():].strip()
        if content:
            found[match.group(1).lower()] = content
    return found


def _note_defaults(
    complaint: Optional[str],
    transcript: Optional[Sequence[ConversationEntry]],
) -> Dict[str, str]:
    defaults = {
        "subjective": "",
        "objective": OBJECTIVE_DISCLAIMER,
        "assessment": "",
        "plan": "",
    }
    if transcript is None:
        return defaults

    if complaint is None and transcript:
        complaint = transcript[0].answer
    parts = [complaint.strip()] if complaint and complaint.strip() else []
    parts.extend(entry.answer.strip() for entry in transcript[1:] if entry.answer.strip())
    defaults["subjective"] = " ".join(parts)
    defaults["plan"] = DEFAULT_PLAN
    return defaults


def parse_note(
    raw: str,
    complaint: Optional[str] = None,
    transcript: Optional[Sequence[ConversationEntry]] = None,
) -> CompiledNote:
    """
    Build a CompiledNote from model output.

    Tries a strict JSON decode first, then a keyword scan of the text.
    Sections recovered by neither fall back to defaults; passing the
    transcript lets subjective and plan fall back to something useful.
    """
    sections: Dict[str, str]
    try:
        data = {str(key).lower(): value for key, value in _decode_object(raw).items()}
        decoded = _NoteFields.model_validate(data)
        sections = {
            name: value.strip()
            for name, value in decoded.model_dump().items()
            if value and value.strip()
        }
    except (ValueError, SchemaValidationError) as exc:
        logger.warning("Could not decode note as JSON (%s); scanning for sections.", exc)
        sections = scan_note_sections(raw)

    defaults = _note_defaults(complaint, transcript)
    return CompiledNote(**{name: sections.get(name) or defaults[name] for name in NOTE_SECTIONS})
