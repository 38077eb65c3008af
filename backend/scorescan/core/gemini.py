import json
import logging
import os
import re
from typing import Any, Dict, Optional

import httpx

from scorescan.core.config import settings

logger = logging.getLogger(__name__)

# Service endpoint for Gemini API (v1beta)
API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GeminiConfigError(GeminiError):
    pass


class GeminiRequestError(GeminiError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class GeminiRateLimitError(GeminiRequestError):
    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message, status_code=429, body=body)


def _redact_key(s: str) -> str:
    """
    Redact 'key=...' in URLs or text so we never leak API keys in logs/responses.
    """
    if not s:
        return s
    return re.sub(r"(key=)([^&\s]+)", r"\1REDACTED", s)


def _get_api_key() -> str:
    # Prefer pydantic settings, fallback to env
    key = (getattr(settings, "GEMINI_API_KEY", "") or "").strip()
    if not key:
        key = (os.environ.get("GEMINI_API_KEY", "") or "").strip()
    if not key:
        raise GeminiConfigError("GEMINI_API_KEY is not set")
    return key


def _extract_json_best_effort(text: str) -> Dict[str, Any]:
    """
    Robust JSON extraction (handles fenced blocks, extra text, etc.).
    Returns the first valid JSON object found.
    """
    # 1) Prefer fenced ```json ... ```
    fenced = re.search(r"```json\s*(\{.*?\})\s*```", text, re.DOTALL | re.IGNORECASE)
    if fenced:
        return json.loads(fenced.group(1).strip())

    # 2) Greedy: outermost braces, so nested objects survive
    m = re.search(r"\{.*\}", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(0))
        except ValueError:
            pass

    # 3) Non-greedy blocks
    for b in re.findall(r"\{.*?\}", text, re.DOTALL):
        try:
            return json.loads(b.strip())
        except ValueError:
            continue

    raise ValueError("No JSON object found in model output")


def _normalize_model(name: str) -> str:
    name = (name or "").strip()
    if not name:
        return ""
    return name if name.startswith("models/") else f"models/{name}"


def _pick_model_from_list(models_payload: Dict[str, Any]) -> str:
    """
    Picks a model name (e.g. 'models/xxx') that supports generateContent.
    Preference:
      1) Flash models (contains 'flash')
      2) Any model that supports generateContent
    """
    models = models_payload.get("models", []) or []

    def supports_generate(m: Dict[str, Any]) -> bool:
        methods = m.get("supportedGenerationMethods") or []
        return any(str(x).lower() == "generatecontent" for x in methods)

    candidates = [m for m in models if supports_generate(m)]
    if not candidates:
        raise GeminiRequestError("No models found that support generateContent (ListModels returned none)")

    flash = [m for m in candidates if "flash" in (m.get("name", "").lower())]
    chosen = (flash[0] if flash else candidates[0]).get("name")
    if not chosen:
        raise GeminiRequestError("ListModels returned a model entry without a name")
    return chosen


async def _resolve_model_name(client: httpx.AsyncClient, api_key: str) -> str:
    """
    Configured GEMINI_MODEL (normalized to 'models/...') wins; otherwise ask
    ListModels and choose one that supports generateContent.
    """
    configured = _normalize_model(
        getattr(settings, "GEMINI_MODEL", "") or os.environ.get("GEMINI_MODEL", "")
    )
    if configured:
        return configured

    r = await client.get(f"{API_BASE}/models", params={"key": api_key})
    if r.status_code >= 400:
        raise GeminiRequestError(
            f"Gemini ListModels failed: {r.status_code}",
            status_code=r.status_code,
            body=_redact_key(r.text)[:2000],
        )
    return _pick_model_from_list(r.json())


def _raise_for_status(r: httpx.Response) -> None:
    if r.status_code < 400:
        return
    safe_body = _redact_key(r.text)[:2000]
    if r.status_code == 429:
        message = "Gemini rate limit exceeded"
        retry_after = (r.headers.get("retry-after") or "").strip()
        if retry_after:
            message += f" (retry after {retry_after}s)"
        raise GeminiRateLimitError(message, body=safe_body)
    raise GeminiRequestError(f"Gemini request failed: {r.status_code}", status_code=r.status_code, body=safe_body)


async def generate_json(
    prompt: str,
    schema: Dict[str, Any],
    *,
    temperature: float = 0.2,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Sends a text prompt to Gemini and returns the parsed JSON object.

    - Uses Structured Output (response_mime_type + response_json_schema)
    - Auto-resolves a model via ListModels if none is configured
    - Single request, no retries
    - Redacts API key from any raised errors
    """
    api_key = _get_api_key()

    if client is None:
        async with httpx.AsyncClient(timeout=settings.GEMINI_TIMEOUT_SECONDS) as own_client:
            return await generate_json(prompt, schema, temperature=temperature, client=own_client)

    model_name = await _resolve_model_name(client, api_key)
    url = f"{API_BASE}/{model_name}:generateContent"

    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "response_mime_type": "application/json",
            "response_json_schema": schema,
            "temperature": temperature,
        },
    }

    try:
        r = await client.post(url, params={"key": api_key}, json=payload)
    except httpx.HTTPError as e:
        raise GeminiRequestError(_redact_key(f"Gemini transport error: {e!r}")) from e

    _raise_for_status(r)
    data = r.json()

    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise GeminiRequestError(f"Unexpected Gemini response shape; raw={json.dumps(data)[:2000]}")

    logger.debug("Gemini %s returned %d chars", model_name, len(text))

    # 1) Strict JSON parse first
    try:
        obj = json.loads(text)
    except ValueError:
        # 2) Best-effort extraction
        obj = _extract_json_best_effort(text)

    if not isinstance(obj, dict):
        raise GeminiRequestError("Gemini returned JSON that is not an object")
    return obj
