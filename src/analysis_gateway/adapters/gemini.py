"""Gemini REST adapter (generateContent).

Every call enables the google_search tool: all categories ask about
today's market, so answers must be grounded in current data.

The credential travels as the `key` query parameter. requests puts it in
the URL, so exception text from requests is never forwarded as-is.
"""
from __future__ import annotations

from typing import Any, Dict

import requests

from ..errors import GENERIC_UPSTREAM_MESSAGE, UpstreamShapeError
from ..logging_util import get_logger, key_fingerprint
from ..types import PromptSpec, UpstreamCallResult
from .base import BaseUpstreamAdapter

logger = get_logger(__name__)

def build_payload(prompt: PromptSpec) -> Dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt.user_message}]}],
        "systemInstruction": {"parts": [{"text": prompt.system_instruction}]},
        "tools": [{"google_search": {}}],
        "generationConfig": {"responseMimeType": prompt.response_mime_type},
    }

def extract_text(data: Dict[str, Any]) -> str:
    try:
        return (
            data.get("candidates", [{}])[0]
                .get("content", {})
                .get("parts", [{}])[0]
                .get("text", "")
        ) or ""
    except (AttributeError, IndexError, TypeError):
        return ""

def _extract_usage(data: Dict[str, Any]) -> Dict[str, int]:
    usage = data.get("usageMetadata", {}) or {}
    if not isinstance(usage, dict):
        return {}
    return {
        "prompt_tokens": usage.get("promptTokenCount", 0) or 0,
        "completion_tokens": usage.get("candidatesTokenCount", 0) or 0,
        "total_tokens": usage.get("totalTokenCount", 0) or 0,
    }

def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return GENERIC_UPSTREAM_MESSAGE
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return GENERIC_UPSTREAM_MESSAGE

class GeminiAdapter(BaseUpstreamAdapter):
    def __init__(self, api_key: str, model: str, endpoint: str, timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:generateContent"

    def invoke(self, prompt: PromptSpec) -> UpstreamCallResult:
        logger.debug("[GEMINI_KEY] %s", key_fingerprint(self.api_key))
        logger.info("[GEMINI] model=%s mime=%s", self.model, prompt.response_mime_type)

        try:
            r = requests.post(
                self.url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=build_payload(prompt),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("[GEMINI] timed out after %ss", self.timeout)
            return UpstreamCallResult(succeeded=False, http_status=504, error_message="AIの応答がタイムアウトしました。")
        except requests.RequestException as e:
            logger.error("[GEMINI] request failed: %s", type(e).__name__)
            return UpstreamCallResult(succeeded=False, http_status=502, error_message=GENERIC_UPSTREAM_MESSAGE)

        if not 200 <= r.status_code < 300:
            message = _error_message(r)
            logger.warning("[GEMINI] http %d: %s", r.status_code, message[:300])
            return UpstreamCallResult(succeeded=False, http_status=r.status_code, error_message=message)

        try:
            data = r.json()
        except ValueError:
            logger.error("[GEMINI] http %d with a non-JSON body", r.status_code)
            raise UpstreamShapeError("AIの応答を解析できませんでした。")
        if not isinstance(data, dict):
            logger.error("[GEMINI] http %d with a non-object body: %s", r.status_code, type(data).__name__)
            raise UpstreamShapeError("AIの応答を解析できませんでした。")

        return UpstreamCallResult(
            succeeded=True,
            http_status=r.status_code,
            raw_text=extract_text(data),
            usage=_extract_usage(data),
        )
