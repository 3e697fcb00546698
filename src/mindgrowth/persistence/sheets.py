"""
Google Sheets recorder for finished play-throughs.

One row per session:
    [timestamp, (scenario, emotions, response, written) x 3, report]

The row always has ROW_WIDTH columns; unfinished slots are empty strings.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from google.oauth2 import service_account
from googleapiclient.discovery import build

from ..config import Settings, get_settings
from ..core.model import UserAnswer

logger = logging.getLogger(__name__)

SCENARIO_SLOTS = 3
FIELDS_PER_SLOT = 4
ROW_WIDTH = 1 + SCENARIO_SLOTS * FIELDS_PER_SLOT + 1

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class PersistenceConfigError(RuntimeError):
    """A spreadsheet secret is missing. Deliberately does not say which."""

    def __init__(self):
        super().__init__("Server configuration error.")


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a 'Z' suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_row(
    answers: Sequence[UserAnswer],
    report: Optional[str],
    timestamp: Optional[str] = None,
) -> List[str]:
    """Flatten a session into one spreadsheet row of ROW_WIDTH cells."""
    row = [timestamp or format_timestamp()]
    for slot in range(SCENARIO_SLOTS):
        answer = answers[slot] if slot < len(answers) else None
        if answer is None:
            row.extend([""] * FIELDS_PER_SLOT)
            continue
        row.extend([
            answer.scenario or "",
            ", ".join(answer.selected_emotion_texts),
            answer.selected_response_text or "",
            answer.written_response or "",
        ])
    row.append(report or "")
    return row


class SheetsRecorder:
    """Appends session rows to a spreadsheet with a service account."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._service: Any = None

    @property
    def is_configured(self) -> bool:
        return self.settings.sheets_configured

    def _get_service(self) -> Any:
        if not self.is_configured:
            logger.error("[SheetsRecorder] One or more required spreadsheet settings are missing")
            raise PersistenceConfigError()
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": self.settings.service_account_email,
                    "private_key": self.settings.private_key,
                    "token_uri": TOKEN_URI,
                },
                scopes=SHEETS_SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def append(self, answers: Sequence[UserAnswer], report: Optional[str]) -> Any:
        """
        Append one row. Raises PersistenceConfigError without credentials;
        API errors (googleapiclient.errors.HttpError) propagate.
        """
        service = self._get_service()
        sheet_range = f"{self.settings.sheet_name}!A1"
        row = build_row(answers, report)
        logger.info(f"[SheetsRecorder] Appending row to {self.settings.sheet_name}")
        result = service.spreadsheets().values().append(
            spreadsheetId=self.settings.sheet_id,
            range=sheet_range,
            valueInputOption="USER_ENTERED",
            body={"values": [row]},
        ).execute()
        logger.info(f"[SheetsRecorder] Row appended: {result.get('updates', {}).get('updatedRange', '?')}")
        return result
