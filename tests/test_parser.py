"""
Tests for the response parser.

Covers:
  - fence stripping
  - continuation decisions: strict decode and the turn-count fallback
  - SOAP notes: JSON decode, section scan, defaults
"""
import pytest

from triage.dialogue.parser import (
    FALLBACK_FOCUS,
    FALLBACK_REASONING,
    parse_decision,
    parse_note,
    parse_question,
    scan_note_sections,
    strip_code_fences,
)
from triage.dialogue.schema import (
    DEFAULT_PLAN,
    OBJECTIVE_DISCLAIMER,
    OPENING_QUESTION,
    ConversationEntry,
)


DECISION = '{"needsMoreInfo": true, "reasoning": "onset unknown", "suggestedFocus": "onset"}'


# ── Fences and questions ──


class TestFences:
    @pytest.mark.parametrize(
        "raw",
        [
            "```json\n{\"a\": 1}\n```",
            "```\n{\"a\": 1}\n```",
            "  ```JSON\n{\"a\": 1}\n```  ",
            "{\"a\": 1}",
        ],
    )
    def test_strips_marker_lines(self, raw):
        assert strip_code_fences(raw) == '{"a": 1}'

    def test_plain_text_untouched(self):
        assert strip_code_fences("SUBJECTIVE: foo") == "SUBJECTIVE: foo"

    def test_question_is_trimmed_verbatim(self):
        assert parse_question("  When did the pain start?\n") == "When did the pain start?"


# ── Continuation decisions ──


class TestDecision:
    def test_decodes_camel_case_record(self):
        decision = parse_decision(DECISION, answered_follow_ups=1)
        assert decision.needs_more_info is True
        assert decision.reasoning == "onset unknown"
        assert decision.suggested_focus == "onset"

    def test_fenced_payload_matches_unfenced(self):
        fenced = f"```json\n{DECISION}\n```"
        assert parse_decision(fenced, 1) == parse_decision(DECISION, 1)

    def test_accepts_snake_case_keys(self):
        decision = parse_decision('{"needs_more_info": false, "reasoning": null}', 0)
        assert decision.needs_more_info is False
        assert decision.reasoning == ""
        assert decision.suggested_focus is None

    @pytest.mark.parametrize(
        "raw",
        [
            "I think we need more information.",
            '{"reasoning": "missing flag"}',
            '{"needsMoreInfo": "yes"}',
            "[true]",
            "",
        ],
    )
    def test_malformed_falls_back(self, raw):
        decision = parse_decision(raw, answered_follow_ups=2)
        assert decision.needs_more_info is True
        assert decision.reasoning == FALLBACK_REASONING
        assert decision.suggested_focus == FALLBACK_FOCUS

    @pytest.mark.parametrize("answered,expected", [(0, True), (3, True), (4, False), (7, False)])
    def test_fallback_threshold_is_four_answers(self, answered, expected):
        assert parse_decision("garbage", answered).needs_more_info is expected


# ── SOAP notes ──


class TestNote:
    def test_decodes_json(self):
        raw = (
            '{"subjective": "S", "objective": "O", "assessment": "A", "plan": "P"}'
        )
        note = parse_note(raw)
        assert (note.subjective, note.objective, note.assessment, note.plan) == ("S", "O", "A", "P")

    def test_decodes_fenced_json_with_capitalised_keys(self):
        raw = '```json\n{"Subjective": "S", "Assessment": "A", "Plan": ["rest", "fluids"]}\n```'
        note = parse_note(raw)
        assert note.subjective == "S"
        assert note.assessment == "A"
        assert note.plan == "rest\nfluids"
        assert note.objective == OBJECTIVE_DISCLAIMER

    def test_empty_decoded_objective_uses_disclaimer(self):
        note = parse_note('{"subjective": "S", "objective": "", "assessment": "A", "plan": "P"}')
        assert note.objective == OBJECTIVE_DISCLAIMER

    def test_section_scan(self):
        note = parse_note("SUBJECTIVE: foo\nPLAN: bar")
        assert note.subjective == "foo"
        assert note.plan == "bar"
        assert note.objective == OBJECTIVE_DISCLAIMER
        assert note.assessment == ""

    def test_section_scan_handles_case_and_markdown(self):
        raw = (
            "Here is the note.\n"
            "**Subjective:** cough for a week\n"
            "objective - ignored heading style\n"
            "## Assessment\nviral URI\nlikely self-limiting\n"
            "Plan: fluids"
        )
        sections = scan_note_sections(raw)
        assert sections["subjective"] == "cough for a week"
        assert sections["assessment"] == "viral URI\nlikely self-limiting"
        assert sections["plan"] == "fluids"

    @pytest.mark.parametrize("raw", ["", "!!!", "{not json", '["a", "b"]', "lorem ipsum\ndolor"])
    def test_garbage_keeps_disclaimer(self, raw):
        assert parse_note(raw).objective == OBJECTIVE_DISCLAIMER

    def test_transcript_defaults(self):
        transcript = [
            ConversationEntry(question=OPENING_QUESTION, answer="sore throat"),
            ConversationEntry(question="How long?", answer="three days"),
            ConversationEntry(question="Fever?", answer="low grade"),
        ]
        note = parse_note("nothing useful", complaint="sore throat", transcript=transcript)
        assert note.subjective == "sore throat three days low grade"
        assert note.plan == DEFAULT_PLAN
        assert note.assessment == ""
        assert note.objective == OBJECTIVE_DISCLAIMER

    def test_decoded_sections_win_over_transcript_defaults(self):
        transcript = [ConversationEntry(question=OPENING_QUESTION, answer="rash")]
        note = parse_note('{"subjective": "itchy rash"}', complaint="rash", transcript=transcript)
        assert note.subjective == "itchy rash"
        assert note.plan == DEFAULT_PLAN
