"""
Pydantic request/response models for the Mind Growth Classroom API.

Proxy payloads keep the camelCase keys the browser client already sends.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.model import UserAnswer


# =============================================================================
# SESSION REQUESTS
# =============================================================================

class ResponseSelectRequest(BaseModel):
    """Pick one behaviour option for the current scenario."""
    response_id: str = Field(..., description="Id of the chosen response option")


class WrittenResponseRequest(BaseModel):
    """Free-text answer for the current scenario."""
    text: str = Field(..., description="What the player would say")


# =============================================================================
# SESSION RESPONSES
# =============================================================================

class StartSessionResponse(BaseModel):
    session_id: str
    state: Dict[str, Any]


class ActionResponse(BaseModel):
    """Result of one controller operation plus the state after it."""
    accepted: bool
    state: Dict[str, Any]


class ReportSectionData(BaseModel):
    title: str
    body: str


class ReportResponse(BaseModel):
    report: Optional[str] = None
    sections: List[ReportSectionData] = Field(default_factory=list)
    report_failed: bool = False


# =============================================================================
# PROXY MODELS
# =============================================================================

class GenerationConfigData(BaseModel):
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    responseMimeType: Optional[str] = None
    responseSchema: Optional[Dict[str, Any]] = None


class GenerateRequest(BaseModel):
    """Generation proxy request: one prompt, optional shape and sampling."""
    intent: Optional[str] = Field(None, description="Caller label, e.g. generateScenarios")
    model: Optional[str] = Field(None, description="Model override")
    contents: str = Field(..., min_length=1, description="Prompt text")
    config: Optional[GenerationConfigData] = None


class GenerateResponse(BaseModel):
    text: str


class UserAnswerData(BaseModel):
    scenario: str = ""
    selectedEmotionTexts: List[str] = Field(default_factory=list)
    selectedResponseText: str = ""
    writtenResponse: str = ""

    def to_answer(self) -> UserAnswer:
        return UserAnswer(
            scenario=self.scenario,
            selected_emotion_texts=list(self.selectedEmotionTexts),
            selected_response_text=self.selectedResponseText,
            written_response=self.writtenResponse,
        )


class SaveRequest(BaseModel):
    userAnswers: List[UserAnswerData] = Field(default_factory=list)
    mindGrowthReport: str = ""


class SaveResponse(BaseModel):
    success: bool
