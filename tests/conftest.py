from typing import List

import pytest

from src.analysis_gateway.adapters.base import BaseUpstreamAdapter
from src.analysis_gateway.config import Settings
from src.analysis_gateway.retry import RetryPolicy
from src.analysis_gateway.types import PromptSpec, UpstreamCallResult


def ok(text: str) -> UpstreamCallResult:
    return UpstreamCallResult(succeeded=True, http_status=200, raw_text=text)


def fail(status: int, message: str = "upstream said no") -> UpstreamCallResult:
    return UpstreamCallResult(succeeded=False, http_status=status, error_message=message)


class FakeAdapter(BaseUpstreamAdapter):
    """Replays a scripted sequence of results and records every prompt."""

    def __init__(self, results: List[UpstreamCallResult]):
        self.results = list(results)
        self.prompts: List[PromptSpec] = []

    def invoke(self, prompt: PromptSpec) -> UpstreamCallResult:
        self.prompts.append(prompt)
        return self.results.pop(0)


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def settings():
    return Settings(retry=RetryPolicy(max_attempts=3, delays=(2, 4, 8)))
