# triage/dialogue/controller.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from triage.dialogue.parser import parse_decision, parse_note, parse_question
from triage.dialogue.policy import SufficiencyPolicy
from triage.dialogue.prompts import (
    build_continuation_prompt,
    build_note_prompt,
    build_question_prompt,
)
from triage.dialogue.schema import OPENING_QUESTION, CompiledNote, ConversationEntry
from triage.dialogue.screens import Screen
from triage.dialogue.state import SessionState
from triage.errors import GenerationError, TriageError, ValidationError
from triage.llm import TextGenerator

if TYPE_CHECKING:
    from triage.services.note_submission import NoteSubmissionAdapter

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    state: SessionState
    error: Optional[TriageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TriageController:
    """
    TriageController drives one triage session.

    Screens:
      - intake: waiting for the chief complaint
      - questioning: follow-up questions, one at a time
      - summary: note compiled (terminal until reset)

    Every operation returns a StepResult carrying the session state and,
    when the operation failed, the error that was reported to the user.
    Only one generation call is in flight at a time; `busy` is True while
    it is outstanding.
    """

    def __init__(
        self,
        generator: TextGenerator,
        submitter: Optional["NoteSubmissionAdapter"] = None,
        policy: Optional[SufficiencyPolicy] = None,
    ):
        self.generator = generator
        self.submitter = submitter
        self.policy = policy or SufficiencyPolicy.dynamic()
        self.state = self._new_state()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, raw_complaint: str) -> StepResult:
        """
        Record the chief complaint and ask the first follow-up question.
        """
        state = self.state
        if state.screen != Screen.INTAKE:
            return self._fail(ValidationError(
                f"start() called on the {state.screen.value} screen",
                user_message="An assessment is already in progress",
            ))

        complaint = (raw_complaint or "").strip()
        if not complaint:
            return self._fail(ValidationError(
                "empty complaint",
                user_message="Please describe your symptoms",
            ))

        state.complaint = complaint
        state.transcript = [ConversationEntry(question=OPENING_QUESTION, answer=complaint)]
        state.screen = Screen.QUESTIONING
        state.turn_count = 1
        state.busy = True
        state.last_error = None

        try:
            question = self._next_question(turn_number=1)
        except GenerationError as exc:
            return self._fail(exc, user_message="Failed to generate first question")

        state.transcript.append(ConversationEntry(question=question))
        state.busy = False
        return StepResult(state)

    def submit_answer(self, raw_answer: str) -> StepResult:
        """
        Answer the pending question, then either ask the next one or
        compile the note, depending on the sufficiency policy.
        """
        state = self.state
        pending = state.pending_entry
        if state.screen != Screen.QUESTIONING or pending is None:
            return self._fail(ValidationError(
                "submit_answer() without a pending question",
                user_message="There is no question waiting for an answer",
            ))

        answer = (raw_answer or "").strip()
        if not answer:
            return self._fail(ValidationError(
                "empty answer",
                user_message="Please provide an answer",
            ))

        state.transcript[-1] = pending.model_copy(update={"answer": answer})
        state.busy = True
        state.last_error = None

        try:
            if self._should_continue():
                question = self._next_question(turn_number=state.turn_count + 1)
                state.transcript.append(ConversationEntry(question=question))
                state.turn_count += 1
                state.busy = False
                return StepResult(state)

            state.screen = Screen.SUMMARY
            note = self._compile_note()
        except GenerationError as exc:
            # Put the question back so the same answer can be resubmitted
            state.transcript[-1] = pending
            state.screen = Screen.QUESTIONING
            return self._fail(exc, user_message="Failed to process response")

        state.note = note
        state.busy = False
        logger.info(
            "Triage session complete after %d follow-up question(s)",
            state.answered_follow_ups,
        )

        if self.submitter is not None:
            state.submission = self.submitter.submit(state)
        return StepResult(state)

    def retry(self) -> StepResult:
        """
        Re-ask the model for the current question after a failed start().
        """
        state = self.state
        if state.screen != Screen.QUESTIONING or state.pending_entry is not None:
            return self._fail(ValidationError(
                "retry() with nothing to retry",
                user_message="There is nothing to retry",
            ))

        state.busy = True
        state.last_error = None
        try:
            question = self._next_question(turn_number=state.turn_count)
        except GenerationError as exc:
            return self._fail(exc, user_message="Failed to generate question")

        state.transcript.append(ConversationEntry(question=question))
        state.busy = False
        return StepResult(state)

    def reset(self) -> StepResult:
        self.state = self._new_state()
        return StepResult(self.state)

    def pending_question(self) -> Optional[str]:
        entry = self.state.pending_entry
        return entry.question if entry is not None else None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _new_state(self) -> SessionState:
        return SessionState(max_turns=self.policy.max_turns)

    def _fail(self, error: TriageError, user_message: Optional[str] = None) -> StepResult:
        if isinstance(error, GenerationError):
            logger.error("Generation failed: %s", error)
        else:
            logger.info("Rejected input: %s", error)
        self.state.last_error = user_message or error.user_message
        self.state.busy = False
        return StepResult(self.state, error)

    def _generate(self, prompt: str) -> str:
        # Every generator failure reaches the caller as a GenerationError
        try:
            return self.generator.generate(prompt)
        except GenerationError:
            raise
        except Exception as exc:
            logger.exception("Text generator raised an unexpected error")
            raise GenerationError(f"Unexpected generator failure: {exc!r}") from exc

    def _next_question(self, turn_number: int) -> str:
        state = self.state
        prompt = build_question_prompt(
            state.complaint,
            state.transcript,
            turn_number,
            max_turns=self.policy.max_turns,
        )
        question = parse_question(self._generate(prompt))
        if not question:
            raise GenerationError("Generation service returned an empty question")
        return question

    def _should_continue(self) -> bool:
        """
        Decide whether another follow-up question is needed.
        A turn cap always wins over the model's judgement.
        """
        state = self.state
        if self.policy.cap_reached(state.turn_count):
            return False
        if not self.policy.asks_model:
            return True

        prompt = build_continuation_prompt(state.complaint, state.transcript)
        decision = parse_decision(self._generate(prompt), state.answered_follow_ups)
        logger.debug(
            "Continuation decision: needs_more_info=%s focus=%r reasoning=%r",
            decision.needs_more_info,
            decision.suggested_focus,
            decision.reasoning,
        )
        return decision.needs_more_info

    def _compile_note(self) -> CompiledNote:
        state = self.state
        prompt = build_note_prompt(state.complaint, state.transcript)
        return parse_note(
            self._generate(prompt),
            complaint=state.complaint,
            transcript=state.transcript,
        )
