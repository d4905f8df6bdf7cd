"""Upstream output normalization.

- Markdown fences (```json / ```html / ```) are stripped even though the
  prompts ask for bare output; the model still adds them now and then.
- Structured responses must parse to a JSON object carrying the prompt's
  required keys. Anything else is an UpstreamShapeError, not a transport error.
- Free text is returned as-is after cleanup; rendering is the UI's job.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from .errors import UpstreamShapeError
from .types import ExpectedShape, NormalizedResponse, PromptSpec

_FENCE_OPEN = re.compile(r"```[A-Za-z0-9_-]*\n?")

def strip_code_fences(text: Optional[str]) -> str:
    if not text:
        return ""
    s = _FENCE_OPEN.sub("", text)
    return s.replace("```", "").strip()

def _parse_object(text: str, prompt: PromptSpec) -> Dict[str, Any]:
    if not text:
        raise UpstreamShapeError("AIの応答が空でした。")
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise UpstreamShapeError(f"AIの応答をJSONとして解析できませんでした: {e.msg}")

    if not isinstance(obj, dict):
        raise UpstreamShapeError(f"AIの応答がJSONオブジェクトではありません: {type(obj).__name__}")

    missing = [k for k in prompt.required_keys if k not in obj]
    if missing:
        raise UpstreamShapeError(f"AIの応答に必要な項目がありません: {', '.join(missing)}")
    return obj

def normalize_response(raw_text: Optional[str], prompt: PromptSpec) -> NormalizedResponse:
    cleaned = strip_code_fences(raw_text)

    if prompt.expected_shape is ExpectedShape.STRUCTURED_JSON:
        return NormalizedResponse(kind="json", payload=_parse_object(cleaned, prompt))

    return NormalizedResponse(kind="text", payload=cleaned)
