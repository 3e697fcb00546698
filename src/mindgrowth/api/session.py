"""
In-memory session manager for Mind Growth Classroom.

Stores one SessionController per play-through, keyed by session_id. The
generation gateway and the persistence forwarder are shared by all sessions.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

from ..config import Settings, get_settings
from ..core.controller import SessionController
from ..llm.client import GeminiClient
from ..llm.gateway import ContentGateway
from ..persistence.forwarder import PersistenceForwarder
from ..persistence.sheets import SheetsRecorder

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages active play-throughs in memory."""

    def __init__(
        self,
        gateway: Any = None,
        forwarder: Any = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        if gateway is None:
            gateway = ContentGateway(client=GeminiClient(settings=settings))
        if forwarder is None:
            recorder = SheetsRecorder(settings) if settings.sheets_configured else None
            if recorder is None:
                logger.warning("[SessionManager] Spreadsheet not configured, sessions will not be saved")
            forwarder = PersistenceForwarder(recorder=recorder)
        self.gateway = gateway
        self.forwarder = forwarder
        self._sessions: Dict[str, SessionController] = {}
        self._lock = threading.Lock()

    def create_session(self) -> str:
        """Create a new session (still in the loading phase) and return its ID."""
        session_id = str(uuid.uuid4())[:8]
        controller = SessionController(gateway=self.gateway, forwarder=self.forwarder)
        with self._lock:
            self._sessions[session_id] = controller
        return session_id

    def get_controller(self, session_id: str) -> Optional[SessionController]:
        with self._lock:
            return self._sessions.get(session_id)

    def session_exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def list_sessions(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())

    def close(self) -> None:
        shutdown = getattr(self.forwarder, "shutdown", None)
        if shutdown is not None:
            shutdown()
