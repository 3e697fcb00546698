"""
Fire-and-forget forwarding of finished sessions to the spreadsheet.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional, Sequence

from ..core.model import UserAnswer

logger = logging.getLogger(__name__)


class PersistenceForwarder:
    """
    Best-effort wrapper around a recorder with an `append(answers, report)`
    method. Failures are logged and dropped; they never reach the player.

    With background=True the append runs on a single worker thread so the
    session reaches its finished state without waiting on the network.
    """

    def __init__(self, recorder: Any = None, background: bool = True):
        self.recorder = recorder
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="sheets") if background else None
        )

    def forward(self, answers: Sequence[UserAnswer], report: Optional[str]) -> bool:
        """Append synchronously. Returns True on success, False on any failure."""
        if self.recorder is None:
            logger.info("[PersistenceForwarder] No recorder configured, skipping save")
            return False
        try:
            self.recorder.append(list(answers), report)
            logger.info("[PersistenceForwarder] Session saved")
            return True
        except Exception as e:
            logger.error(f"[PersistenceForwarder] Could not save session: {e}")
            return False

    def submit(self, answers: Sequence[UserAnswer], report: Optional[str]) -> Optional[Future]:
        """Forward without blocking the caller (inline when not in background mode)."""
        snapshot = list(answers)
        if self._executor is None:
            self.forward(snapshot, report)
            return None
        try:
            return self._executor.submit(self.forward, snapshot, report)
        except RuntimeError as e:
            logger.error(f"[PersistenceForwarder] Could not schedule save: {e}")
            return None

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
