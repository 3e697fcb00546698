"""Tests for the HTTP API (FastAPI TestClient, no network)."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from mindgrowth.api import routes
from mindgrowth.api.app import app
from mindgrowth.api.session import SessionManager
from mindgrowth.config import Settings
from mindgrowth.core.model import UserAnswer
from mindgrowth.llm.client import GeminiClient, GenerationAPIError
from mindgrowth.persistence.sheets import PersistenceConfigError

from fakes import SAMPLE_REPORT, FakeGateway, RecordingForwarder


@pytest.fixture
def manager(monkeypatch):
    sm = SessionManager(gateway=FakeGateway(), forwarder=RecordingForwarder(), settings=Settings())
    monkeypatch.setattr(routes, "session_manager", sm)
    return sm


@pytest.fixture
def client(manager):
    return TestClient(app)


@pytest.fixture
def generation(monkeypatch):
    fake = MagicMock()
    fake.is_available = True
    monkeypatch.setattr(routes, "get_generation_client", lambda: fake)
    return fake


@pytest.fixture
def recorder(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(routes, "get_sheets_recorder", lambda: fake)
    return fake


def _post(client, path, json=None):
    resp = client.post(path, json=json)
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestSessionFlow:
    def test_start_lands_on_welcome(self, client):
        data = _post(client, "/api/session/start")
        assert data["state"]["phase"] == "welcome"
        assert data["state"]["advisory"] is None
        assert len(data["session_id"]) == 8

    def test_full_playthrough(self, client, manager):
        sid = _post(client, "/api/session/start")["session_id"]
        base = f"/api/session/{sid}"
        state = _post(client, f"{base}/play")["state"]
        assert state["phase"] == "playing"
        assert state["scenario"]["scenario"] == "상황 1"

        for index in range(3):
            _post(client, f"{base}/emotions/emotion2")
            confirmed = _post(client, f"{base}/emotions/confirm")
            assert confirmed["accepted"]
            assert confirmed["state"]["feedback"]["visible"]
            _post(client, f"{base}/acknowledge")
            chosen = _post(client, f"{base}/response", {"response_id": "response2"})
            assert chosen["state"]["feedback"]["is_correct"] is False
            _post(client, f"{base}/acknowledge")
            written = _post(client, f"{base}/written", {"text": f"답 {index}"})
            assert written["accepted"]
            assert len(written["state"]["answers"]) == index + 1
            assert _post(client, f"{base}/advance")["accepted"]

        state = client.get(base).json()
        assert state["phase"] == "finished"
        assert state["answers"][2]["selectedEmotionTexts"] == ["감정3-2"]

        report = client.get(f"{base}/report").json()
        assert report["report"] == SAMPLE_REPORT
        assert [s["title"] for s in report["sections"]] == [
            "감정 탐험하기 🎨", "생각과 행동의 힘 💪", "성장을 위한 제안 ✨",
        ]
        assert report["report_failed"] is False
        assert len(manager.forwarder.submissions) == 1

    def test_rejected_action_is_not_an_error(self, client):
        sid = _post(client, "/api/session/start")["session_id"]
        data = _post(client, f"/api/session/{sid}/emotions/confirm")
        assert data["accepted"] is False
        assert data["state"]["phase"] == "welcome"

    def test_blank_written_rejected(self, client):
        sid = _post(client, "/api/session/start")["session_id"]
        base = f"/api/session/{sid}"
        _post(client, f"{base}/play")
        _post(client, f"{base}/emotions/emotion1")
        _post(client, f"{base}/emotions/confirm")
        _post(client, f"{base}/acknowledge")
        _post(client, f"{base}/response", {"response_id": "response1"})
        _post(client, f"{base}/acknowledge")
        assert _post(client, f"{base}/written", {"text": "   "})["accepted"] is False

    def test_restart(self, client):
        sid = _post(client, "/api/session/start")["session_id"]
        _post(client, f"/api/session/{sid}/play")
        data = _post(client, f"/api/session/{sid}/restart")
        assert data["accepted"]
        assert data["state"]["phase"] == "welcome"
        assert data["state"]["scenario_index"] == 0

    def test_unknown_session(self, client):
        resp = client.post("/api/session/nope/play")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Session nope not found"}

    def test_delete(self, client, manager):
        sid = _post(client, "/api/session/start")["session_id"]
        assert client.delete(f"/api/session/{sid}").status_code == 200
        assert not manager.session_exists(sid)
        assert client.get(f"/api/session/{sid}").status_code == 404


class TestGenerateProxy:
    def test_success(self, client, generation):
        generation.generate_content.return_value = "생성된 글"
        resp = client.post("/api/generate", json={
            "intent": "generateScenarios",
            "contents": "시나리오를 만들어줘",
            "config": {"temperature": 1.0, "responseMimeType": "application/json"},
        })
        assert resp.status_code == 200
        assert resp.json() == {"text": "생성된 글"}
        prompt, config, model = generation.generate_content.call_args[0]
        assert prompt == "시나리오를 만들어줘"
        assert config == {"temperature": 1.0, "responseMimeType": "application/json"}
        assert model is None

    def test_missing_key(self, client, generation):
        generation.is_available = False
        resp = client.post("/api/generate", json={"contents": "hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "API key not configured on server"}

    def test_upstream_failure_is_generic(self, client, generation):
        generation.generate_content.side_effect = GenerationAPIError(403, "key=secret rejected")
        resp = client.post("/api/generate", json={"contents": "hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "An error occurred processing your request."}

    @pytest.mark.parametrize("body", [{}, {"contents": ""}, {"contents": "hi", "config": {"temperature": 9}}])
    def test_bad_body(self, client, generation, body):
        resp = client.post("/api/generate", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body."}
        generation.generate_content.assert_not_called()

    @pytest.mark.parametrize("body", [[], None, {"candidates": ["oops"]}])
    def test_unexpected_upstream_shape(self, client, monkeypatch, body):
        monkeypatch.setattr(routes, "get_generation_client", lambda: GeminiClient(settings=Settings(api_key="k")))
        upstream = MagicMock()
        upstream.status_code = 200
        upstream.json.return_value = body
        with patch("mindgrowth.llm.client.requests.post", return_value=upstream):
            resp = client.post("/api/generate", json={"contents": "hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "An error occurred processing your request."}

    def test_wrong_method(self, client):
        resp = client.get("/api/generate")
        assert resp.status_code == 405
        assert "error" in resp.json()


class TestReportStream:
    def test_chunks_concatenate(self, client, generation):
        generation.generate_content_stream.return_value = iter(["## 감정 ", "탐험하기", "\n본문"])
        resp = client.post("/api/generate-report", json={"contents": "리포트", "config": {"temperature": 0.6}})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "## 감정 탐험하기\n본문"
        assert generation.generate_content_stream.call_args[0][1] == {"temperature": 0.6}

    def test_full_config_forwarded(self, client, generation):
        generation.generate_content_stream.return_value = iter(["x"])
        client.post("/api/generate-report", json={
            "contents": "리포트",
            "model": "gemini-other",
            "config": {"temperature": 0.6, "responseMimeType": "text/plain", "responseSchema": {"type": "STRING"}},
        })
        prompt, config, model = generation.generate_content_stream.call_args[0]
        assert config == {"temperature": 0.6, "responseMimeType": "text/plain", "responseSchema": {"type": "STRING"}}
        assert model == "gemini-other"

    def test_failure_before_first_chunk(self, client, generation):
        def failing():
            raise GenerationAPIError(500, "boom")
            yield  # pragma: no cover

        generation.generate_content_stream.return_value = failing()
        resp = client.post("/api/generate-report", json={"contents": "리포트"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "An error occurred processing your request."}

    def test_missing_key(self, client, generation):
        generation.is_available = False
        resp = client.post("/api/generate-report", json={"contents": "리포트"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "API key not configured on server"}


class TestSaveProxy:
    BODY = {
        "userAnswers": [{
            "scenario": "상황",
            "selectedEmotionTexts": ["기쁨"],
            "selectedResponseText": "행동",
            "writtenResponse": "답",
        }],
        "mindGrowthReport": "리포트",
    }

    def test_success(self, client, recorder):
        resp = client.post("/api/save", json=self.BODY)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        answers, report = recorder.append.call_args[0]
        assert answers == [UserAnswer("상황", ["기쁨"], "행동", "답")]
        assert report == "리포트"

    def test_missing_configuration(self, client, recorder):
        recorder.append.side_effect = PersistenceConfigError()
        resp = client.post("/api/save", json=self.BODY)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server configuration error."}

    def test_upstream_failure(self, client, recorder):
        recorder.append.side_effect = RuntimeError("HTTP 403 from sheets")
        resp = client.post("/api/save", json=self.BODY)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to save data due to a server error."}

    def test_get_not_allowed(self, client, recorder):
        resp = client.get("/api/save")
        assert resp.status_code == 405
        recorder.append.assert_not_called()


class TestMeta:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_status(self, client, monkeypatch):
        monkeypatch.setattr(routes, "get_settings", lambda: Settings(api_key="k"))
        assert client.get("/api/status").json() == {"llm_available": True, "sheets_configured": False}
