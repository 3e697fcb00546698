"""
Runtime configuration for Mind Growth Classroom.

Everything comes from environment variables. A `.env` file found in the
working directory (or any parent of this package) is loaded first, without
overriding variables that are already set.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_SHEET_NAME = "Sheet1"
DEFAULT_TIMEOUT = 60.0

logger = logging.getLogger(__name__)


def load_dotenv() -> None:
    """Load .env file into os.environ (only vars not already set)."""
    for parent in [Path.cwd()] + list(Path(__file__).resolve().parents):
        env_path = parent / ".env"
        if env_path.exists():
            for line in env_path.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" in line:
                    key, value = line.split("=", 1)
                    key, value = key.strip(), value.strip().strip('"').strip("'")
                    if key and key not in os.environ:
                        os.environ[key] = value
            break  # only load the first .env found


def _parse_timeout(raw: str) -> float:
    raw = raw.strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        timeout = 0.0
    if not 0 < timeout < float("inf"):
        logger.warning(f"[config] Ignoring invalid GEMINI_TIMEOUT={raw!r}, using {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT
    return timeout


@dataclass
class Settings:
    """
    Service settings.

    Environment variables:
        API_KEY / GEMINI_API_KEY: generation API key
        GEMINI_MODEL, GEMINI_BASE_URL, GEMINI_TIMEOUT: generation endpoint
        GOOGLE_SHEET_ID, GOOGLE_SERVICE_ACCOUNT_EMAIL, GOOGLE_PRIVATE_KEY:
            spreadsheet destination and service account
        GOOGLE_SHEET_NAME: destination sheet (default: Sheet1)
        ALLOWED_ORIGINS: comma separated CORS origins (default: *)
    """

    api_key: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    sheet_id: str = ""
    service_account_email: str = ""
    private_key: str = ""
    sheet_name: str = DEFAULT_SHEET_NAME

    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        env = os.environ
        api_key = ""
        for env_var in ("API_KEY", "GEMINI_API_KEY"):
            api_key = env.get(env_var, "").strip()
            if api_key:
                break

        # Hosted env vars usually carry the PEM key with escaped newlines.
        private_key = env.get("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n").strip()

        origins = [o.strip() for o in env.get("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            api_key=api_key,
            model=env.get("GEMINI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
            base_url=env.get("GEMINI_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/") or DEFAULT_BASE_URL,
            timeout=_parse_timeout(env.get("GEMINI_TIMEOUT", "")),
            sheet_id=env.get("GOOGLE_SHEET_ID", "").strip(),
            service_account_email=env.get("GOOGLE_SERVICE_ACCOUNT_EMAIL", "").strip(),
            private_key=private_key,
            sheet_name=env.get("GOOGLE_SHEET_NAME", "").strip() or DEFAULT_SHEET_NAME,
            allowed_origins=origins or ["*"],
        )

    @property
    def sheets_configured(self) -> bool:
        """True when all three spreadsheet secrets are present."""
        return bool(self.sheet_id and self.service_account_email and self.private_key)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
