# triage/services/triage_session.py
from __future__ import annotations

from typing import Dict, Optional, Tuple
from uuid import uuid4

from triage.dialogue.controller import StepResult, TriageController
from triage.dialogue.policy import SufficiencyPolicy
from triage.llm import TextGenerator
from triage.services.note_submission import NoteSubmissionAdapter


class UnknownSessionError(LookupError):
    pass


class TriageSessionService:
    """
    Service that coordinates:
      - creating one TriageController per triage session
      - routing patient actions to the right controller
      - sharing the generator and submission adapter between sessions
    """

    def __init__(
        self,
        generator: TextGenerator,
        submitter: Optional[NoteSubmissionAdapter] = None,
        policy: Optional[SufficiencyPolicy] = None,
    ):
        self.generator = generator
        self.submitter = submitter
        self.policy = policy or SufficiencyPolicy.dynamic()
        self._sessions: Dict[str, TriageController] = {}

    def new_controller(self) -> TriageController:
        return TriageController(self.generator, submitter=self.submitter, policy=self.policy)

    def start_session(self, complaint: str) -> Tuple[str, StepResult]:
        """
        Start a new triage session.

        The session is only registered once the complaint passes validation;
        a generation failure still registers it so the caller can retry.
        """
        controller = self.new_controller()
        result = controller.start(complaint)
        session_id = str(uuid4())
        if result.state.transcript:
            self._sessions[session_id] = controller
        return session_id, result

    def get(self, session_id: str) -> TriageController:
        controller = self._sessions.get(session_id)
        if controller is None:
            raise UnknownSessionError(session_id)
        return controller

    def start(self, session_id: str, complaint: str) -> StepResult:
        return self.get(session_id).start(complaint)

    def submit_answer(self, session_id: str, answer: str) -> StepResult:
        return self.get(session_id).submit_answer(answer)

    def retry(self, session_id: str) -> StepResult:
        return self.get(session_id).retry()

    def reset(self, session_id: str) -> StepResult:
        return self.get(session_id).reset()

    def end_session(self, session_id: str) -> TriageController:
        """
        Forget a session, finished or not. Raises UnknownSessionError if it
        was never registered or has already been ended.
        """
        controller = self._sessions.pop(session_id, None)
        if controller is None:
            raise UnknownSessionError(session_id)
        return controller
