"""
HTTP wrapper for the Gemini generateContent REST endpoints.

One request per call: the game never retries, it falls back to static
content instead (see llm/gateway.py).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

import requests

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


class GenerationAPIError(Exception):
    """Raised when the generation API returns an error or cannot be reached."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Generation API error {status_code}: {message}")


def build_generation_config(
    temperature: Optional[float] = None,
    response_mime_type: Optional[str] = None,
    response_schema: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Translate sampling/shape options into a REST `generationConfig`."""
    config: Dict[str, Any] = {}
    if temperature is not None:
        config["temperature"] = temperature
    if response_mime_type:
        config["responseMimeType"] = response_mime_type
    if response_schema is not None:
        config["responseSchema"] = response_schema
    return config


def extract_text(data: Any) -> str:
    """
    Concatenate the text parts of the first candidate.

    A body without candidates yields "". Raises ValueError when the body is
    not shaped like a generateContent response.
    """
    if not isinstance(data, dict):
        raise ValueError("response body is not an object")
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise ValueError("'candidates' is not an array")
    if not candidates:
        return ""
    if not isinstance(candidates[0], dict):
        raise ValueError("candidate is not an object")
    content = candidates[0].get("content") or {}
    if not isinstance(content, dict):
        raise ValueError("candidate content is not an object")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise ValueError("'parts' is not an array")
    return "".join(
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
    )


@dataclass
class GeminiClient:
    """
    Minimal client for `models/{model}:generateContent`.

    Configure via Settings (API_KEY / GEMINI_API_KEY, GEMINI_MODEL,
    GEMINI_BASE_URL, GEMINI_TIMEOUT).
    """

    api_key: str = ""
    model: str = ""
    base_url: str = ""
    timeout: float = 0.0
    settings: Optional[Settings] = field(default=None, repr=False)

    def __post_init__(self):
        settings = self.settings or get_settings()
        if not self.api_key:
            self.api_key = settings.api_key
        if not self.model:
            self.model = settings.model
        if not self.base_url:
            self.base_url = settings.base_url
        if not self.timeout:
            self.timeout = settings.timeout
        self.base_url = self.base_url.rstrip("/")

    @property
    def is_available(self) -> bool:
        """Check if the client has an API key configured."""
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _url(self, model: Optional[str], method: str) -> str:
        return f"{self.base_url}/models/{model or self.model}:{method}"

    def _body(self, prompt: str, generation_config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    def generate_content(
        self,
        prompt: str,
        generation_config: Optional[Dict[str, Any]] = None,
        model_override: Optional[str] = None,
    ) -> str:
        """
        Call generateContent and return the generated text.

        Raises GenerationAPIError on a missing key, transport failure or
        non-200 response.
        """
        if not self.is_available:
            raise GenerationAPIError(401, "API key not configured")

        try:
            resp = requests.post(
                self._url(model_override, "generateContent"),
                headers=self._headers(),
                json=self._body(prompt, generation_config),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.warning("[GeminiClient] Request timed out")
            raise GenerationAPIError(408, "Request timed out")
        except requests.exceptions.RequestException as e:
            logger.warning(f"[GeminiClient] Connection error: {e}")
            raise GenerationAPIError(0, f"Connection error: {e}")

        if resp.status_code != 200:
            raise GenerationAPIError(resp.status_code, resp.text[:500])

        try:
            data = resp.json()
        except ValueError:
            raise GenerationAPIError(502, "Response body is not JSON")
        try:
            return extract_text(data)
        except ValueError as e:
            logger.warning(f"[GeminiClient] Unexpected response shape: {e}")
            raise GenerationAPIError(502, "Unexpected response shape")

    def generate_content_stream(
        self,
        prompt: str,
        generation_config: Optional[Dict[str, Any]] = None,
        model_override: Optional[str] = None,
    ) -> Generator[str, None, None]:
        """
        Stream generateContent, yielding text chunks as they arrive.

        Uses the server-sent-events form (`alt=sse`). Errors before the first
        chunk raise GenerationAPIError; malformed event lines are skipped.
        """
        if not self.is_available:
            raise GenerationAPIError(401, "API key not configured")

        try:
            resp = requests.post(
                self._url(model_override, "streamGenerateContent"),
                params={"alt": "sse"},
                headers=self._headers(),
                json=self._body(prompt, generation_config),
                timeout=self.timeout,
                stream=True,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"[GeminiClient] Stream connection error: {e}")
            raise GenerationAPIError(0, f"Connection error: {e}")

        with resp:
            if resp.status_code != 200:
                raise GenerationAPIError(resp.status_code, resp.text[:500])
            for line in resp.iter_lines(decode_unicode=True):
                if not line or not line.startswith("data: "):
                    continue
                try:
                    text = extract_text(json.loads(line[6:]))
                except ValueError:
                    # JSONDecodeError is a ValueError too
                    continue
                if text:
                    yield text
