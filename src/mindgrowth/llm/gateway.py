"""
ContentGateway: the three generation intents of the game.

    generate N scenarios  → ScenarioBatch (generated or fallback)
    feedback on an answer → plain text (or an apology)
    final report          → ReportText (generated or apology)

Every intent degrades to deterministic content on failure. Nothing here
raises to the caller: the game must never get stuck on the AI.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..content.scenario_bank import get_fallback_scenarios
from ..content.templates import (
    FEEDBACK_APOLOGY,
    REPORT_APOLOGY,
    REPORT_TITLE,
    SECTION_BEHAVIOUR,
    SECTION_EMOTIONS,
    SECTION_GROWTH,
)
from ..core.model import (
    Scenario,
    ScenarioFormatError,
    UserAnswer,
)
from .client import GeminiClient, GenerationAPIError, build_generation_config

logger = logging.getLogger(__name__)

SCENARIO_TEMPERATURE = 1.0
FEEDBACK_TEMPERATURE = 0.5
REPORT_TEMPERATURE = 0.6

_CODE_FENCE = re.compile(r"```(?:json)?([\s\S]*?)```")
_MARKDOWN_EMPHASIS = re.compile(r"[*_#]")


class GenerationFailure(Exception):
    """Generated content was missing, malformed or of the wrong shape."""


@dataclass(frozen=True)
class ScenarioBatch:
    scenarios: List[Scenario]
    is_fallback: bool = False


@dataclass(frozen=True)
class ReportText:
    text: str
    is_fallback: bool = False


# =============================================================================
# RESPONSE SCHEMA
# =============================================================================

SCENARIO_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "scenario": {
            "type": "STRING",
            "description": "초등 고학년 학생이 학교 생활(온라인 포함)에서 겪을 수 있는 현실적이고 약간 복잡한 갈등 상황에 대한 한두 문장의 설명입니다.",
        },
        "emotions": {
            "type": "ARRAY",
            "description": "그 상황에서 느낄 수 있는 네 가지 다양한 감정입니다.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING", "description": "감정의 고유 ID (예: 'emotion1')"},
                    "text": {"type": "STRING", "description": "감정의 이름 (예: '속상함')"},
                    "emoji": {"type": "STRING", "description": "감정을 나타내는 이모지 (예: '😢')"},
                },
                "required": ["id", "text", "emoji"],
            },
        },
        "responses": {
            "type": "ARRAY",
            "description": "상황에 대한 세 가지 가능한 대응 방안입니다.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING", "description": "대응 방안의 고유 ID (예: 'response1')"},
                    "text": {
                        "type": "STRING",
                        "description": "대응 방안에 대한 설명입니다. 다른 선택지들과 비슷한 길이로 간결하게 작성해주세요.",
                    },
                    "isCorrect": {"type": "BOOLEAN", "description": "이 대응이 권장되는 행동인지 여부입니다."},
                    "feedback": {
                        "type": "STRING",
                        "description": (
                            "이 대응을 선택했을 때 제공될 구체적이고 건설적인 피드백 메시지입니다. "
                            "절대 마크다운을 사용하지 말고, 평이한 텍스트로 2-3문장 내로 간결하게 작성해주세요. "
                            "잘못된 선택지인 경우, 왜 좋지 않은지 설명하고 더 나은 대안을 부드럽게 제시해주세요."
                        ),
                    },
                },
                "required": ["id", "text", "isCorrect", "feedback"],
            },
        },
    },
    "required": ["scenario", "emotions", "responses"],
}

SCENARIO_BATCH_SCHEMA: Dict[str, Any] = {"type": "ARRAY", "items": SCENARIO_SCHEMA}


# =============================================================================
# PROMPTS
# =============================================================================

SCENARIO_PROMPT = (
    "초등 고학년 인성 교육을 위한 학교 내 갈등 상황 시뮬레이션 시나리오 {count}개를 생성해줘. "
    "온라인 소통, 조별 과제, 친구 관계, 경쟁 등 현실적이고 약간 복잡한 상황으로 부탁해. "
    "각 시나리오는 서로 다른 주제를 다루어야 해. 다음 JSON 스키마를 따라야 해."
)

FEEDBACK_PROMPT = (
    "당신은 초등학생을 위한 친절하고 현명한 상담가입니다. "
    "학생이 처한 상황은 다음과 같습니다: \"{scenario}\". "
    "이 상황에서 학생은 이렇게 말하고 싶어합니다: \"{answer}\". "
    "학생의 답변을 분석하고, 부드럽고 격려하는 말투로 피드백을 한국어로 작성해주세요. "
    "절대 마크다운 문법(예: **, *)을 사용하지 마세요. 평이한 텍스트로 2-3개의 문장으로 간결하게 작성해야 합니다. "
    "만약 학생의 답변이 무성의하거나(예: '몰라요', '싫어'), 부정적이거나 공격적이라면, "
    "왜 그런 마음이 들었을지 공감해주면서도, 단순히 공감만 하는 것을 넘어 "
    "학생이 더 나은 방향으로 생각하고 말할 수 있도록 구체적인 대안이나 질문을 던져주며 "
    "긍정적인 변화를 유도해주세요."
)

REPORT_PROMPT = """\
당신은 아이들의 마음을 잘 이해하는 전문 심리 상담가입니다. 한 초등학생이 가상 시뮬레이션을 통해 여러 갈등 상황에 다음과 같이 응답했습니다: {answers}.
이 응답들을 바탕으로, 학생을 위한 매우 개인화되고 깊이 있는 '마음 성장 리포트'를 마크다운 형식의 한국어로 작성해주세요.
리포트는 단순한 칭찬을 넘어, 학생의 실제 답변(선택한 감정, 행동, 작성한 말)을 구체적으로 언급하며 분석해야 합니다. 예를 들어, "A상황에서 '속상함'을 느끼고 '솔직하게 말한다'고 답한 것을 보니, 자신의 감정을 건강하게 표현할 줄 아는군요." 와 같이 작성해주세요. 답변들의 패턴을 분석하여 학생의 강점과 성장할 수 있는 점을 통찰력 있게 짚어주세요.
개선점은 비판이 아닌, "다음에는 이렇게 해보면 어떨까요?"와 같이 부드럽고 실천 가능한 대안을 제시하여 긍정적인 변화를 유도해야 합니다. 'OO아' 와 같이 학생의 이름을 부르는 표현은 절대 사용하지 마세요. 익명성을 유지해주세요.

리포트 구성 (각 섹션은 3-4문장 내외로 간결하게 작성):
1. 제목: '# {title}'
2. 감정 분석: '## {emotions}' 제목으로, 학생이 선택한 감정들을 통해 자신의 감정을 얼마나 잘 이해하고 있는지 분석하고 격려.
3. 행동 및 언어 분석: '## {behaviour}' 제목으로, 학생의 문제 해결 방식과 작성한 대화 내용을 분석. 긍정적인 점은 칭찬하고, 개선할 점이 보이면 "이렇게 해보면 어떨까요?" 와 같이 부드럽게 제안.
4. 성장을 위한 제안: '## {growth}' 제목으로, 앞으로 친구들과 더 즐겁게 소통할 수 있는 구체적이고 긍정적인 팁을 1~2가지 제안하며 용기를 주는 따뜻한 마무리.
"""


def build_report_prompt(answers: Sequence[UserAnswer]) -> str:
    payload = json.dumps([a.to_dict() for a in answers], ensure_ascii=False, indent=2)
    return REPORT_PROMPT.format(
        answers=payload,
        title=REPORT_TITLE,
        emotions=SECTION_EMOTIONS,
        behaviour=SECTION_BEHAVIOUR,
        growth=SECTION_GROWTH,
    )


def strip_code_fence(text: str) -> str:
    """Return the body of the first ``` fence, or the text itself."""
    match = _CODE_FENCE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return text.strip()


def strip_markdown(text: str) -> str:
    return _MARKDOWN_EMPHASIS.sub("", text).strip()


def parse_scenarios(raw: Any, count: int) -> List[Scenario]:
    """
    Validate a generated payload and return exactly `count` scenarios.

    Raises GenerationFailure when the payload is not JSON, not a non-empty
    array, holds fewer than `count` entries, or any used entry is malformed.
    """
    if not isinstance(raw, str):
        raise GenerationFailure("non-string response for scenarios")
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as e:
        raise GenerationFailure(f"response is not valid JSON: {e}")

    if not isinstance(data, list) or not data:
        raise GenerationFailure("generated data is not a non-empty array")
    if len(data) < count:
        raise GenerationFailure(f"expected {count} scenarios, got {len(data)}")

    try:
        return [Scenario.from_dict(item, strict=True) for item in data[:count]]
    except ScenarioFormatError as e:
        raise GenerationFailure(f"malformed scenario: {e}")


class ContentGateway:
    """
    Generation intents with graceful degradation.

    Usage:
        gateway = ContentGateway(GeminiClient())
        batch = gateway.generate_scenarios(3)
        feedback = gateway.provide_feedback_on_response(scenario_text, text)
        report = gateway.generate_mind_growth_report(answers)
    """

    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client

    @property
    def is_available(self) -> bool:
        return self.client is not None and self.client.is_available

    def _generate(self, prompt: str, **config: Any) -> str:
        if self.client is None:
            raise GenerationFailure("no generation client configured")
        try:
            return self.client.generate_content(prompt, build_generation_config(**config))
        except GenerationAPIError as e:
            raise GenerationFailure(str(e)) from e

    def generate_scenarios(self, count: int) -> ScenarioBatch:
        """Generate `count` scenarios, or fall back to the static bank."""
        try:
            raw = self._generate(
                SCENARIO_PROMPT.format(count=count),
                temperature=SCENARIO_TEMPERATURE,
                response_mime_type="application/json",
                response_schema=SCENARIO_BATCH_SCHEMA,
            )
            scenarios = parse_scenarios(raw, count)
            logger.info(f"[Gateway] Generated {len(scenarios)} scenarios")
            return ScenarioBatch(scenarios=scenarios, is_fallback=False)
        except GenerationFailure as e:
            logger.warning(f"[Gateway] Scenario generation failed, using fallback: {e}")
            return ScenarioBatch(scenarios=get_fallback_scenarios(count), is_fallback=True)

    def provide_feedback_on_response(self, scenario_text: str, written_text: str) -> str:
        """Short coaching message on a free-text answer, markdown removed."""
        try:
            feedback = strip_markdown(self._generate(
                FEEDBACK_PROMPT.format(scenario=scenario_text, answer=written_text),
                temperature=FEEDBACK_TEMPERATURE,
            ))
            if not feedback:
                raise GenerationFailure("empty feedback")
            return feedback
        except GenerationFailure as e:
            logger.warning(f"[Gateway] Feedback generation failed: {e}")
            return FEEDBACK_APOLOGY

    def generate_mind_growth_report(self, answers: Sequence[UserAnswer]) -> ReportText:
        """Long-form report over all answers, or the apology text."""
        try:
            text = self._generate(build_report_prompt(answers), temperature=REPORT_TEMPERATURE).strip()
            if not text:
                raise GenerationFailure("empty report")
            logger.info(f"[Gateway] Report generated ({len(text)} chars)")
            return ReportText(text=text, is_fallback=False)
        except GenerationFailure as e:
            logger.warning(f"[Gateway] Report generation failed: {e}")
            return ReportText(text=REPORT_APOLOGY, is_fallback=True)
