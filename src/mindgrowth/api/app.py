"""
FastAPI application for Mind Growth Classroom.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging to show INFO from mindgrowth modules
logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")
logging.getLogger("mindgrowth").setLevel(logging.INFO)

from ..config import get_settings
from . import routes
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if routes.session_manager is not None:
        routes.session_manager.close()


app = FastAPI(
    title="Mind Growth Classroom",
    description="Social-conflict scenarios for children with an AI-written growth report",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Every HTTP error is rendered as {"error": ...}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"[app] Rejected request body on {request.url.path}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body."})


@app.get("/")
async def root():
    return {"message": "Mind Growth Classroom API", "docs": "/docs"}


@app.get("/health")
async def health():
    return {"status": "ok"}
