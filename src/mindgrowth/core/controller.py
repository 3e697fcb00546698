"""
SessionController: the state machine of one play-through.

Global phases:
    loading → welcome → playing → generating_report → finished

Inside `playing`, each scenario moves through three steps:
    emotion → response → write → (next scenario | report)

All mutation goes through the controller's operations. Each operation
returns True when it was accepted and False when it was rejected as a no-op
(wrong phase/step, empty input, duplicate submission, stale result).

Generation calls run with the lock released. A version token, bumped on
restart, lets a call that resolves after a restart be discarded.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..content.scenario_bank import get_fallback_scenarios
from ..content.templates import (
    EMOTION_AFFIRMATION,
    FEEDBACK_APOLOGY,
    REPORT_APOLOGY,
    REPORT_FAILURE_ADVISORY,
    SCENARIO_FALLBACK_ADVISORY,
)
from .model import Scenario, UserAnswer
from .report import parse_report, report_sections

logger = logging.getLogger(__name__)

# Phase constants
PHASE_LOADING = "loading"
PHASE_WELCOME = "welcome"
PHASE_PLAYING = "playing"
PHASE_GENERATING_REPORT = "generating_report"
PHASE_FINISHED = "finished"

# Per-scenario steps
STEP_EMOTION = "emotion"
STEP_RESPONSE = "response"
STEP_WRITE = "write"

TOTAL_SCENARIOS = 3


@dataclass
class SessionState:
    """Everything one play-through knows. Owned by a single controller."""
    phase: str = PHASE_LOADING
    scenarios: List[Scenario] = field(default_factory=list)
    scenario_index: int = 0
    step: str = STEP_EMOTION

    # Current scenario
    selected_emotion_ids: List[str] = field(default_factory=list)
    emotions_confirmed: bool = False
    selected_response_id: Optional[str] = None
    written_draft: str = ""
    submitting: bool = False
    answered: bool = False

    # Surfaced feedback, waiting for acknowledgment
    feedback_message: str = ""
    is_choice_correct: bool = False
    show_feedback: bool = False

    # Whole play-through
    answers: List[UserAnswer] = field(default_factory=list)
    report: Optional[str] = None
    report_failed: bool = False
    advisory: Optional[str] = None
    version: int = 0

    def reset_scenario(self) -> None:
        self.step = STEP_EMOTION
        self.selected_emotion_ids = []
        self.emotions_confirmed = False
        self.selected_response_id = None
        self.written_draft = ""
        self.submitting = False
        self.answered = False
        self.feedback_message = ""
        self.is_choice_correct = False
        self.show_feedback = False
        self.advisory = None

    def surface_feedback(self, message: str, is_correct: bool) -> None:
        self.feedback_message = message
        self.is_choice_correct = is_correct
        self.show_feedback = True


class SessionController:
    """
    Drives one play-through.

    Usage:
        controller = SessionController(gateway, forwarder)
        controller.load_scenarios()          # → welcome
        controller.start_playing()           # → playing / emotion
        controller.select_emotion("e1-1")
        controller.confirm_emotions()
        controller.acknowledge_feedback()    # → response
        controller.select_response("r1-2")
        controller.acknowledge_feedback()    # → write
        controller.submit_written_response("...")
        controller.advance()                 # → next scenario or finished
    """

    def __init__(
        self,
        gateway: Any,
        forwarder: Any = None,
        total_scenarios: int = TOTAL_SCENARIOS,
    ):
        self.gateway = gateway
        self.forwarder = forwarder
        self.total_scenarios = total_scenarios
        self.state = SessionState()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def current_scenario(self) -> Optional[Scenario]:
        scenarios = self.state.scenarios
        if 0 <= self.state.scenario_index < len(scenarios):
            return scenarios[self.state.scenario_index]
        return None

    @property
    def is_last_scenario(self) -> bool:
        return self.state.scenario_index >= self.total_scenarios - 1

    def _in_step(self, step: str) -> bool:
        return (
            self.state.phase == PHASE_PLAYING
            and self.state.step == step
            and self.current_scenario is not None
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_scenarios(self) -> bool:
        """
        Fetch scenarios for this play-through and move to `welcome`.

        Falls back to the static bank (with an advisory) on any failure.
        Returns False only if a restart superseded this load.
        """
        with self._lock:
            self.state.advisory = None
            self.state.phase = PHASE_LOADING
            version = self.state.version

        count = self.total_scenarios
        try:
            batch = self.gateway.generate_scenarios(count)
            scenarios = list(batch.scenarios)
            used_fallback = bool(batch.is_fallback)
            if len(scenarios) != count:
                logger.warning(f"[SessionController] Gateway returned {len(scenarios)} scenarios, expected {count}")
                scenarios, used_fallback = get_fallback_scenarios(count), True
        except Exception as e:
            logger.warning(f"[SessionController] Scenario loading failed: {e}")
            scenarios, used_fallback = get_fallback_scenarios(count), True

        with self._lock:
            if self.state.version != version:
                logger.info("[SessionController] Discarding scenarios from a superseded session")
                return False
            self.state.scenarios = scenarios
            if used_fallback:
                self.state.advisory = SCENARIO_FALLBACK_ADVISORY
            self.state.phase = PHASE_WELCOME
            return True

    def start_playing(self) -> bool:
        """Leave the welcome screen and show the first scenario."""
        with self._lock:
            if self.state.phase != PHASE_WELCOME or not self.state.scenarios:
                return False
            self.state.phase = PHASE_PLAYING
            return True

    # ------------------------------------------------------------------
    # Emotion step
    # ------------------------------------------------------------------

    def select_emotion(self, emotion_id: str) -> bool:
        """Toggle one emotion in the current selection."""
        with self._lock:
            if not self._in_step(STEP_EMOTION) or self.state.emotions_confirmed:
                return False
            selected = self.state.selected_emotion_ids
            if emotion_id in selected:
                selected.remove(emotion_id)
            else:
                selected.append(emotion_id)
            return True

    def confirm_emotions(self) -> bool:
        """Lock in the selection and surface the (always positive) message."""
        with self._lock:
            if not self._in_step(STEP_EMOTION) or self.state.emotions_confirmed:
                return False
            if not self.state.selected_emotion_ids:
                return False
            self.state.emotions_confirmed = True
            self.state.surface_feedback(EMOTION_AFFIRMATION, True)
            return True

    # ------------------------------------------------------------------
    # Response step
    # ------------------------------------------------------------------

    def select_response(self, response_id: str) -> bool:
        """Record the chosen response and surface its graded feedback."""
        with self._lock:
            if not self._in_step(STEP_RESPONSE):
                return False
            response = self.current_scenario.find_response(response_id)
            self.state.selected_response_id = response_id
            if response is None:
                logger.info(f"[SessionController] Unknown response id {response_id!r}")
                self.state.surface_feedback("", False)
            else:
                self.state.surface_feedback(response.feedback, response.is_correct)
            return True

    def acknowledge_feedback(self) -> bool:
        """Dismiss surfaced feedback: emotion → response, response → write."""
        with self._lock:
            if self.state.phase != PHASE_PLAYING or not self.state.show_feedback:
                return False
            if self.state.step == STEP_EMOTION:
                self.state.step = STEP_RESPONSE
            elif self.state.step == STEP_RESPONSE:
                self.state.step = STEP_WRITE
            else:
                return False
            self.state.show_feedback = False
            self.state.feedback_message = ""
            self.state.is_choice_correct = False
            return True

    # ------------------------------------------------------------------
    # Write step
    # ------------------------------------------------------------------

    def submit_written_response(self, text: str) -> bool:
        """
        Get feedback on the free-text answer and record the scenario's answer.

        At most one answer is appended per scenario: a second submission, or
        one made while the first is still in flight, is rejected.
        """
        with self._lock:
            if not self._in_step(STEP_WRITE):
                return False
            if self.state.answered or self.state.submitting:
                return False
            if not text or not text.strip():
                return False
            scenario = self.current_scenario
            version = self.state.version
            index = self.state.scenario_index
            self.state.submitting = True
            self.state.written_draft = text
            self.state.show_feedback = False
            self.state.feedback_message = ""

        try:
            feedback = self.gateway.provide_feedback_on_response(scenario.scenario, text)
        except Exception as e:
            logger.warning(f"[SessionController] Feedback request failed: {e}")
            feedback = FEEDBACK_APOLOGY

        with self._lock:
            if self.state.version != version or self.state.scenario_index != index:
                logger.info("[SessionController] Discarding feedback from a superseded session")
                return False
            self.state.submitting = False
            response = scenario.find_response(self.state.selected_response_id)
            self.state.answers.append(UserAnswer(
                scenario=scenario.scenario,
                selected_emotion_texts=scenario.emotion_texts(self.state.selected_emotion_ids),
                selected_response_text=response.text if response else "",
                written_response=text,
            ))
            self.state.answered = True
            # Written answers always get the positive styling.
            self.state.surface_feedback(feedback, True)
            return True

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """
        Move on after the current scenario was answered.

        After the last scenario: generate the report over all answers, hand
        the session to the persistence forwarder, and finish.
        """
        with self._lock:
            if not self._in_step(STEP_WRITE) or not self.state.answered:
                return False
            if not self.is_last_scenario:
                self.state.reset_scenario()
                self.state.scenario_index += 1
                return True
            self.state.phase = PHASE_GENERATING_REPORT
            self.state.show_feedback = False
            answers = list(self.state.answers)
            version = self.state.version

        report_text, failed = self._generate_report(answers)

        with self._lock:
            if self.state.version != version:
                logger.info("[SessionController] Discarding report from a superseded session")
                return False
            self.state.report = report_text
            if failed:
                self.state.report_failed = True
                self.state.advisory = REPORT_FAILURE_ADVISORY

        self._persist(answers, report_text)

        with self._lock:
            if self.state.version != version:
                return False
            self.state.phase = PHASE_FINISHED
            return True

    def _generate_report(self, answers: List[UserAnswer]):
        try:
            result = self.gateway.generate_mind_growth_report(answers)
            return result.text, bool(result.is_fallback)
        except Exception as e:
            logger.warning(f"[SessionController] Report request failed: {e}")
            return REPORT_APOLOGY, True

    def _persist(self, answers: List[UserAnswer], report: str) -> None:
        if self.forwarder is None:
            return
        try:
            self.forwarder.submit(answers, report)
        except Exception as e:
            logger.error(f"[SessionController] Persistence hand-off failed: {e}")

    def restart(self) -> bool:
        """Throw the play-through away and load a fresh one."""
        with self._lock:
            self.state = SessionState(version=self.state.version + 1)
        return self.load_scenarios()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def report_sections(self) -> List[Dict[str, str]]:
        with self._lock:
            parsed = parse_report(self.state.report)
        return [{"title": title, "body": body} for title, body in report_sections(parsed)]

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the session for the front end."""
        with self._lock:
            s = self.state
            scenario = self.current_scenario
            return {
                "phase": s.phase,
                "step": s.step,
                "scenario_index": s.scenario_index,
                "total_scenarios": self.total_scenarios,
                "progress": round((s.scenario_index + 1) / self.total_scenarios, 3),
                "scenario": scenario.to_dict() if scenario and s.phase == PHASE_PLAYING else None,
                "selected_emotion_ids": list(s.selected_emotion_ids),
                "emotions_confirmed": s.emotions_confirmed,
                "selected_response_id": s.selected_response_id,
                "written_draft": s.written_draft,
                "submitting": s.submitting,
                "answered": s.answered,
                "feedback": {
                    "message": s.feedback_message,
                    "is_correct": s.is_choice_correct,
                    "visible": s.show_feedback,
                },
                "answers": [a.to_dict() for a in s.answers],
                "report": s.report,
                "report_sections": self.report_sections() if s.report else [],
                "report_failed": s.report_failed,
                "advisory": s.advisory,
            }
