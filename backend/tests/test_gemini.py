import json

import httpx
import pytest

from scorescan.core import gemini
from scorescan.core.config import settings

from conftest import json_response


def candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "secret-key")
    monkeypatch.setattr(settings, "GEMINI_MODEL", "gemini-2.0-flash")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_generate_json_structured_output(api_key):
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(candidate('{"health_score": 7, "explanation": "ok"}'))

    async with mock_client(handler) as client:
        out = await gemini.generate_json("rate this", {"type": "object"}, client=client)

    assert out == {"health_score": 7, "explanation": "ok"}
    req = seen[0]
    assert req.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
    assert req.url.params["key"] == "secret-key"
    body = json.loads(req.content)
    assert body["generationConfig"]["response_mime_type"] == "application/json"
    assert body["generationConfig"]["response_json_schema"] == {"type": "object"}
    assert body["contents"][0]["parts"][0]["text"] == "rate this"


async def test_model_picked_from_list_when_not_configured(api_key, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_MODEL", "")
    models = {
        "models": [
            {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
            {"name": "models/gemini-pro", "supportedGenerationMethods": ["generateContent"]},
            {"name": "models/gemini-2.5-flash", "supportedGenerationMethods": ["generateContent"]},
        ]
    }
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.method == "GET":
            return json_response(models)
        return json_response(candidate('{"ok": true}'))

    async with mock_client(handler) as client:
        assert await gemini.generate_json("x", {}, client=client) == {"ok": True}
    assert paths == ["/v1beta/models", "/v1beta/models/gemini-2.5-flash:generateContent"]


async def test_fenced_output_is_extracted(api_key):
    text = 'Here you go:\n```json\n{"alternatives": [{"name": "Oat bar"}]}\n```'
    async with mock_client(lambda r: json_response(candidate(text))) as client:
        out = await gemini.generate_json("x", {}, client=client)
    assert out == {"alternatives": [{"name": "Oat bar"}]}


async def test_http_error_is_raised_with_key_redacted(api_key):
    async with mock_client(lambda r: httpx.Response(500, text="bad url ?key=secret-key")) as client:
        with pytest.raises(gemini.GeminiRequestError) as exc:
            await gemini.generate_json("x", {}, client=client)
    assert exc.value.status_code == 500
    assert "secret-key" not in exc.value.body


async def test_rate_limit(api_key):
    resp = httpx.Response(429, headers={"retry-after": "3"}, text="slow down")
    async with mock_client(lambda r: resp) as client:
        with pytest.raises(gemini.GeminiRateLimitError) as exc:
            await gemini.generate_json("x", {}, client=client)
    assert exc.value.status_code == 429
    assert "retry after 3s" in exc.value.message


async def test_unexpected_shape(api_key):
    async with mock_client(lambda r: json_response({"candidates": []})) as client:
        with pytest.raises(gemini.GeminiRequestError):
            await gemini.generate_json("x", {}, client=client)


async def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(gemini.GeminiConfigError):
        await gemini.generate_json("x", {})


def test_pick_model_prefers_flash():
    payload = {
        "models": [
            {"name": "models/gemini-pro", "supportedGenerationMethods": ["generateContent"]},
            {"name": "models/gemini-1.5-flash", "supportedGenerationMethods": ["generateContent"]},
        ]
    }
    assert gemini._pick_model_from_list(payload) == "models/gemini-1.5-flash"
    with pytest.raises(gemini.GeminiRequestError):
        gemini._pick_model_from_list({"models": []})


def test_redact_key():
    assert gemini._redact_key("https://x/y?key=abc&alt=json") == "https://x/y?key=REDACTED&alt=json"
