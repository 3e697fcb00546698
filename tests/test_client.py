"""Tests for llm/client.py. requests is patched; nothing leaves the process."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from mindgrowth.config import Settings
from mindgrowth.llm.client import (
    GeminiClient,
    GenerationAPIError,
    build_generation_config,
    extract_text,
)


def _client(**kwargs):
    return GeminiClient(settings=Settings(api_key="test-key", **kwargs))


def _response(status=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


def _candidate(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


class TestHelpers:
    def test_generation_config(self):
        assert build_generation_config() == {}
        assert build_generation_config(temperature=0.0) == {"temperature": 0.0}
        assert build_generation_config(
            temperature=1.0, response_mime_type="application/json", response_schema={"type": "ARRAY"}
        ) == {"temperature": 1.0, "responseMimeType": "application/json", "responseSchema": {"type": "ARRAY"}}

    def test_extract_text(self):
        assert extract_text(_candidate("안녕", "하세요")) == "안녕하세요"
        assert extract_text({}) == ""
        assert extract_text({"candidates": [{"finishReason": "SAFETY"}]}) == ""

    @pytest.mark.parametrize("body", [
        [],
        None,
        {"candidates": ["oops"]},
        {"candidates": [{"content": ["text"]}]},
        {"candidates": [{"content": {"parts": {"text": "x"}}}]},
    ])
    def test_extract_text_rejects_unexpected_shapes(self, body):
        with pytest.raises(ValueError):
            extract_text(body)


class TestGenerateContent:
    def test_settings_defaults(self):
        client = _client(model="gemini-test", base_url="https://example.test/v1/")
        assert client.model == "gemini-test"
        assert client.base_url == "https://example.test/v1"
        assert client.is_available

    def test_missing_key(self):
        client = GeminiClient(settings=Settings())
        assert not client.is_available
        with pytest.raises(GenerationAPIError) as exc_info:
            client.generate_content("hi")
        assert exc_info.value.status_code == 401

    def test_request(self):
        client = _client(model="gemini-test", base_url="https://example.test/v1")
        with patch("mindgrowth.llm.client.requests.post", return_value=_response(payload=_candidate("답"))) as post:
            text = client.generate_content("질문", {"temperature": 0.5})
        assert text == "답"
        args, kwargs = post.call_args
        assert args[0] == "https://example.test/v1/models/gemini-test:generateContent"
        assert kwargs["headers"]["x-goog-api-key"] == "test-key"
        assert kwargs["json"] == {
            "contents": [{"role": "user", "parts": [{"text": "질문"}]}],
            "generationConfig": {"temperature": 0.5},
        }

    def test_model_override(self):
        client = _client()
        with patch("mindgrowth.llm.client.requests.post", return_value=_response(payload=_candidate("x"))) as post:
            client.generate_content("q", model_override="gemini-other")
        assert ":generateContent" in post.call_args[0][0]
        assert "/models/gemini-other:" in post.call_args[0][0]
        assert "generationConfig" not in post.call_args[1]["json"]

    def test_http_error(self):
        with patch("mindgrowth.llm.client.requests.post", return_value=_response(503, text="overloaded")):
            with pytest.raises(GenerationAPIError) as exc_info:
                _client().generate_content("q")
        assert exc_info.value.status_code == 503

    def test_timeout(self):
        with patch("mindgrowth.llm.client.requests.post", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(GenerationAPIError) as exc_info:
                _client().generate_content("q")
        assert exc_info.value.status_code == 408

    def test_connection_error(self):
        with patch("mindgrowth.llm.client.requests.post", side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(GenerationAPIError) as exc_info:
                _client().generate_content("q")
        assert exc_info.value.status_code == 0

    def test_non_json_body(self):
        with patch("mindgrowth.llm.client.requests.post", return_value=_response(200, payload=None)):
            with pytest.raises(GenerationAPIError) as exc_info:
                _client().generate_content("q")
        assert exc_info.value.status_code == 502

    @pytest.mark.parametrize("body", [[], None, {"candidates": ["oops"]}])
    def test_unexpected_shape(self, body):
        resp = _response(200, payload={})
        resp.json.return_value = body
        with patch("mindgrowth.llm.client.requests.post", return_value=resp):
            with pytest.raises(GenerationAPIError) as exc_info:
                _client().generate_content("q")
        assert exc_info.value.status_code == 502


class TestStream:
    def _stream_response(self, lines):
        resp = _response(payload={})
        resp.iter_lines.return_value = iter(lines)
        resp.__enter__.return_value = resp
        return resp

    def test_chunks(self):
        lines = [
            "data: " + json.dumps(_candidate("## 감정")),
            "",
            ": keep-alive",
            "data: {broken",
            "data: " + json.dumps(_candidate(" 탐험하기")),
        ]
        with patch("mindgrowth.llm.client.requests.post", return_value=self._stream_response(lines)) as post:
            chunks = list(_client().generate_content_stream("q"))
        assert chunks == ["## 감정", " 탐험하기"]
        assert post.call_args[1]["params"] == {"alt": "sse"}
        assert post.call_args[1]["stream"] is True
        assert post.call_args[0][0].endswith(":streamGenerateContent")

    def test_error_before_first_chunk(self):
        with patch("mindgrowth.llm.client.requests.post", return_value=_response(500, text="boom")):
            with pytest.raises(GenerationAPIError):
                next(_client().generate_content_stream("q"))

    def test_error_closes_response(self):
        resp = _response(429, text="quota")
        with patch("mindgrowth.llm.client.requests.post", return_value=resp):
            with pytest.raises(GenerationAPIError) as exc_info:
                next(_client().generate_content_stream("q"))
        assert exc_info.value.status_code == 429
        resp.__exit__.assert_called_once()

    def test_unexpected_chunk_shapes_skipped(self):
        lines = [
            "data: []",
            "data: null",
            'data: {"candidates": ["oops"]}',
            'data: {"candidates": [{"content": "text"}]}',
            "data: " + json.dumps(_candidate("남은 글")),
        ]
        with patch("mindgrowth.llm.client.requests.post", return_value=self._stream_response(lines)):
            assert list(_client().generate_content_stream("q")) == ["남은 글"]
