"""
REST API routes for Mind Growth Classroom.

Two groups:
    /api/session/...   the game itself, one SessionController per session
    /api/generate, /api/generate-report, /api/save
                       thin proxies for browser clients that drive the game
                       themselves and only need the server-held secrets
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.responses import StreamingResponse

from ..config import get_settings
from ..core.controller import SessionController
from ..llm.client import GeminiClient, GenerationAPIError, build_generation_config
from ..persistence.sheets import PersistenceConfigError, SheetsRecorder
from .schemas import (
    ActionResponse,
    GenerateRequest,
    GenerateResponse,
    ReportResponse,
    ResponseSelectRequest,
    SaveRequest,
    SaveResponse,
    StartSessionResponse,
    WrittenResponseRequest,
)
from .session import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Global session manager (created lazily, closed by the app lifespan)
session_manager: Optional[SessionManager] = None

GENERIC_GENERATION_ERROR = "An error occurred processing your request."
MISSING_KEY_ERROR = "API key not configured on server"
SERVER_CONFIG_ERROR = "Server configuration error."
SAVE_FAILED_ERROR = "Failed to save data due to a server error."


def get_session_manager() -> SessionManager:
    global session_manager
    if session_manager is None:
        session_manager = SessionManager()
    return session_manager


def get_generation_client() -> GeminiClient:
    return GeminiClient(settings=get_settings())


def get_sheets_recorder() -> SheetsRecorder:
    return SheetsRecorder(get_settings())


def _controller(session_id: str) -> SessionController:
    controller = get_session_manager().get_controller(session_id)
    if controller is None:
        raise HTTPException(404, f"Session {session_id} not found")
    return controller


async def _act(controller: SessionController, operation: Callable[..., bool], *args) -> ActionResponse:
    # Operations may block on the generation API; keep them off the event loop.
    accepted = await run_in_threadpool(operation, *args)
    return ActionResponse(accepted=accepted, state=controller.snapshot())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _generation_config(request: GenerateRequest) -> Dict[str, Any]:
    config = request.config
    if config is None:
        return {}
    return build_generation_config(
        temperature=config.temperature,
        response_mime_type=config.responseMimeType,
        response_schema=config.responseSchema,
    )


# =============================================================================
# STATUS
# =============================================================================

@router.get("/status")
async def status():
    """Check whether generation and saving are configured."""
    settings = get_settings()
    return {
        "llm_available": bool(settings.api_key),
        "sheets_configured": settings.sheets_configured,
    }


# =============================================================================
# GAME SESSION
# =============================================================================

@router.post("/session/start", response_model=StartSessionResponse)
async def start_session():
    """Create a play-through and load its scenarios (ends on the welcome screen)."""
    sm = get_session_manager()
    session_id = sm.create_session()
    controller = sm.get_controller(session_id)
    if controller is None:
        raise HTTPException(500, "Failed to create session")
    await run_in_threadpool(controller.load_scenarios)
    logger.info(f"[routes] Session {session_id} ready ({controller.state.phase})")
    return StartSessionResponse(session_id=session_id, state=controller.snapshot())


@router.get("/session/{session_id}")
async def get_session(session_id: str):
    """Current state of a play-through."""
    return _controller(session_id).snapshot()


@router.delete("/session/{session_id}")
async def delete_session(session_id: str):
    _controller(session_id)
    get_session_manager().delete_session(session_id)
    return {"deleted": session_id}


@router.post("/session/{session_id}/play", response_model=ActionResponse)
async def start_playing(session_id: str):
    controller = _controller(session_id)
    return await _act(controller, controller.start_playing)


@router.post("/session/{session_id}/emotions/confirm", response_model=ActionResponse)
async def confirm_emotions(session_id: str):
    controller = _controller(session_id)
    return await _act(controller, controller.confirm_emotions)


@router.post("/session/{session_id}/emotions/{emotion_id}", response_model=ActionResponse)
async def toggle_emotion(session_id: str, emotion_id: str):
    controller = _controller(session_id)
    return await _act(controller, controller.select_emotion, emotion_id)


@router.post("/session/{session_id}/response", response_model=ActionResponse)
async def select_response(session_id: str, request: ResponseSelectRequest):
    controller = _controller(session_id)
    return await _act(controller, controller.select_response, request.response_id)


@router.post("/session/{session_id}/acknowledge", response_model=ActionResponse)
async def acknowledge(session_id: str):
    controller = _controller(session_id)
    return await _act(controller, controller.acknowledge_feedback)


@router.post("/session/{session_id}/written", response_model=ActionResponse)
async def submit_written(session_id: str, request: WrittenResponseRequest):
    controller = _controller(session_id)
    return await _act(controller, controller.submit_written_response, request.text)


@router.post("/session/{session_id}/advance", response_model=ActionResponse)
async def advance(session_id: str):
    controller = _controller(session_id)
    return await _act(controller, controller.advance)


@router.post("/session/{session_id}/restart", response_model=ActionResponse)
async def restart(session_id: str):
    controller = _controller(session_id)
    return await _act(controller, controller.restart)


@router.get("/session/{session_id}/report", response_model=ReportResponse)
async def get_report(session_id: str):
    """The finished report, raw and split into its display sections."""
    controller = _controller(session_id)
    snapshot = controller.snapshot()
    return ReportResponse(
        report=snapshot["report"],
        sections=snapshot["report_sections"],
        report_failed=snapshot["report_failed"],
    )


# =============================================================================
# PROXIES
# =============================================================================

@router.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest):
    """Forward one prompt to the generation API and return its text."""
    client = get_generation_client()
    if not client.is_available:
        logger.error("[routes] Generation requested but no API key is configured")
        return _error(500, MISSING_KEY_ERROR)

    try:
        text = await run_in_threadpool(
            client.generate_content, request.contents, _generation_config(request), request.model
        )
    except GenerationAPIError as e:
        logger.error(f"[routes] Generation failed (intent={request.intent}): {e}")
        return _error(500, GENERIC_GENERATION_ERROR)
    return GenerateResponse(text=text)


@router.post("/generate-report")
async def generate_report(request: GenerateRequest):
    """Streaming variant of /generate: plain-text chunks until the end of stream."""
    client = get_generation_client()
    if not client.is_available:
        logger.error("[routes] Report stream requested but no API key is configured")
        return _error(500, MISSING_KEY_ERROR)

    chunks = client.generate_content_stream(
        request.contents, _generation_config(request), request.model
    )
    # Pull the first chunk here so upstream errors still become a 500.
    try:
        first = await run_in_threadpool(next, chunks, None)
    except GenerationAPIError as e:
        logger.error(f"[routes] Report stream failed to open: {e}")
        return _error(500, GENERIC_GENERATION_ERROR)

    def body() -> Iterator[str]:
        if first:
            yield first
        try:
            for chunk in chunks:
                yield chunk
        except Exception as e:
            logger.error(f"[routes] Report stream broke: {e}")

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"X-Content-Type-Options": "nosniff"},
    )


@router.post("/save", response_model=SaveResponse)
async def save(request: SaveRequest):
    """Append one finished session to the spreadsheet."""
    logger.info("[routes] Received request to save a session")
    recorder = get_sheets_recorder()
    answers = [a.to_answer() for a in request.userAnswers]
    try:
        await run_in_threadpool(recorder.append, answers, request.mindGrowthReport)
    except PersistenceConfigError:
        return _error(500, SERVER_CONFIG_ERROR)
    except Exception as e:
        logger.error(f"[routes] Critical error saving to spreadsheet: {e}")
        return _error(500, SAVE_FAILED_ERROR)
    return SaveResponse(success=True)
