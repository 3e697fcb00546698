"""
Domain types for a play-through: scenarios, their options, and answers.

Scenarios arrive as JSON (from the generation API or the fallback bank) and
are converted once with `Scenario.from_dict`, which also enforces the shape
the game relies on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Shape of generated content
EMOTIONS_PER_SCENARIO = 4
RESPONSES_PER_SCENARIO = 3


class ScenarioFormatError(ValueError):
    """Raised when a scenario payload does not have the expected shape."""


def _require_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ScenarioFormatError(f"{where}: missing or empty '{key}'")
    return value.strip()


@dataclass(frozen=True)
class Emotion:
    """One selectable feeling. Never graded."""
    id: str
    text: str
    emoji: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "text": self.text, "emoji": self.emoji}


@dataclass(frozen=True)
class ResponseOption:
    """One possible behaviour, graded by `is_correct`."""
    id: str
    text: str
    is_correct: bool
    feedback: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "isCorrect": self.is_correct,
            "feedback": self.feedback,
        }


@dataclass(frozen=True)
class Scenario:
    """A conflict situation with its emotion and response options."""
    scenario: str
    emotions: Tuple[Emotion, ...] = ()
    responses: Tuple[ResponseOption, ...] = ()

    def find_response(self, response_id: Optional[str]) -> Optional[ResponseOption]:
        for response in self.responses:
            if response.id == response_id:
                return response
        return None

    def emotion_texts(self, emotion_ids: List[str]) -> List[str]:
        """Texts of the selected emotions, in the scenario's own order."""
        selected = set(emotion_ids)
        return [e.text for e in self.emotions if e.id in selected]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario": self.scenario,
            "emotions": [e.to_dict() for e in self.emotions],
            "responses": [r.to_dict() for r in self.responses],
        }

    @classmethod
    def from_dict(cls, data: Any, strict: bool = True) -> "Scenario":
        """
        Build a Scenario from its JSON form.

        With strict=True (generated content) the option counts must be exactly
        EMOTIONS_PER_SCENARIO and RESPONSES_PER_SCENARIO. Option ids must be
        unique within the scenario in both modes.
        """
        if not isinstance(data, dict):
            raise ScenarioFormatError("scenario entry is not an object")
        text = _require_str(data, "scenario", "scenario")

        raw_emotions = data.get("emotions") or []
        raw_responses = data.get("responses") or []
        if not isinstance(raw_emotions, list) or not isinstance(raw_responses, list):
            raise ScenarioFormatError("emotions/responses must be arrays")

        emotions = []
        for item in raw_emotions:
            if not isinstance(item, dict):
                raise ScenarioFormatError("emotion entry is not an object")
            emotions.append(Emotion(
                id=_require_str(item, "id", "emotion"),
                text=_require_str(item, "text", "emotion"),
                emoji=str(item.get("emoji") or "").strip(),
            ))

        responses = []
        for item in raw_responses:
            if not isinstance(item, dict):
                raise ScenarioFormatError("response entry is not an object")
            is_correct = item.get("isCorrect", item.get("is_correct"))
            if not isinstance(is_correct, bool):
                raise ScenarioFormatError("response: 'isCorrect' must be a boolean")
            responses.append(ResponseOption(
                id=_require_str(item, "id", "response"),
                text=_require_str(item, "text", "response"),
                is_correct=is_correct,
                feedback=str(item.get("feedback") or "").strip(),
            ))

        if len({e.id for e in emotions}) != len(emotions):
            raise ScenarioFormatError("duplicate emotion id")
        if len({r.id for r in responses}) != len(responses):
            raise ScenarioFormatError("duplicate response id")

        if strict:
            if len(emotions) != EMOTIONS_PER_SCENARIO:
                raise ScenarioFormatError(
                    f"expected {EMOTIONS_PER_SCENARIO} emotions, got {len(emotions)}"
                )
            if len(responses) != RESPONSES_PER_SCENARIO:
                raise ScenarioFormatError(
                    f"expected {RESPONSES_PER_SCENARIO} responses, got {len(responses)}"
                )

        return cls(scenario=text, emotions=tuple(emotions), responses=tuple(responses))


@dataclass(frozen=True)
class UserAnswer:
    """What the player did in one completed scenario."""
    scenario: str
    selected_emotion_texts: List[str] = field(default_factory=list)
    selected_response_text: str = ""
    written_response: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario": self.scenario,
            "selectedEmotionTexts": list(self.selected_emotion_texts),
            "selectedResponseText": self.selected_response_text,
            "writtenResponse": self.written_response,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserAnswer":
        return cls(
            scenario=str(data.get("scenario") or ""),
            selected_emotion_texts=[str(t) for t in data.get("selectedEmotionTexts") or []],
            selected_response_text=str(data.get("selectedResponseText") or ""),
            written_response=str(data.get("writtenResponse") or ""),
        )
