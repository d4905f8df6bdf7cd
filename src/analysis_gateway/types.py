"""Shared types and lightweight data containers.

Everything here is request-scoped:
- built once per inbound call
- discarded when the response is written
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple

ResponseKind = Literal["json", "text"]


class Category(str, Enum):
    MARKET_DATA = "market_data"
    RANKING = "ranking"
    DIVIDEND_RANKING = "dividend_ranking"
    YUTAI_LIST = "yutai_list"
    FREEFORM = "freeform"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        s = (value or "").strip().lower() if isinstance(value, str) else ""
        for c in cls:
            if c.value == s:
                return c
        # Unknown or absent type falls back to freeform
        return cls.FREEFORM


class ExpectedShape(str, Enum):
    STRUCTURED_JSON = "structured_json"
    FREE_TEXT = "free_text"


@dataclass
class AnalysisRequest:
    category: Category
    query: Optional[str] = None
    custom_instruction: Optional[str] = None


@dataclass(frozen=True)
class PromptSpec:
    system_instruction: str
    user_message: str
    expected_shape: ExpectedShape
    required_keys: Tuple[str, ...] = ()

    @property
    def response_mime_type(self) -> str:
        if self.expected_shape is ExpectedShape.STRUCTURED_JSON:
            return "application/json"
        return "text/plain"


@dataclass
class UpstreamCallResult:
    succeeded: bool
    http_status: int
    raw_text: Optional[str] = None
    error_message: Optional[str] = None
    usage: Dict[str, int] = field(default_factory=dict)


@dataclass
class NormalizedResponse:
    kind: ResponseKind
    payload: Any

    def to_body(self) -> Any:
        if self.kind == "json":
            return self.payload
        return {"text": self.payload}


@dataclass
class FailureReport:
    http_status: int
    message: str

    def to_body(self) -> Dict[str, str]:
        return {"error": self.message}
