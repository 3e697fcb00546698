"""
Fixed user-facing messages for Mind Growth Classroom.
"""

from __future__ import annotations

# Shown after emotions are confirmed. Emotions are never graded.
EMOTION_AFFIRMATION = "그런 감정들을 느낄 수 있구나. 네 마음을 알려줘서 고마워!"

# Advisory shown on the welcome screen when generation fell back to the bank
SCENARIO_FALLBACK_ADVISORY = "새로운 이야기들을 만드는데 실패해서, 준비된 이야기들로 시작할게요!"

# Advisory shown on the finished screen when the report could not be generated
REPORT_FAILURE_ADVISORY = "리포트를 생성하는 데 문제가 발생했어요."

FEEDBACK_APOLOGY = "피드백을 생성하는 중 오류가 발생했어요. 다시 시도해 주세요."
REPORT_APOLOGY = "리포트를 생성하는 중 오류가 발생했어요. 다시 시도해 주세요."

# =============================================================================
# REPORT LAYOUT
# =============================================================================

REPORT_TITLE = "마음 성장 리포트 쑥쑥 🌱"

SECTION_EMOTIONS = "감정 탐험하기 🎨"
SECTION_BEHAVIOUR = "생각과 행동의 힘 💪"
SECTION_GROWTH = "성장을 위한 제안 ✨"

# Display order of the report sections
REPORT_SECTIONS = (SECTION_EMOTIONS, SECTION_BEHAVIOUR, SECTION_GROWTH)
