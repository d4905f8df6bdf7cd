"""AnalysisGateway: one inbound call -> one JSON response.

Steps:
1) method check (POST only)
2) credential check (before anything reaches the upstream)
3) parse + classify
4) call upstream through the retry loop
5) normalize

All failures are translated at this boundary; handle() never raises.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from .adapters import BaseUpstreamAdapter, GeminiAdapter
from .classifier import build_prompt
from .config import Settings, load_settings, read_credential
from .errors import GatewayError, MethodNotAllowed, MissingCredential, to_failure_report
from .input_spec import parse_request
from .logging_util import get_logger, log_step
from .normalize import normalize_response
from .retry import RetryController

logger = get_logger(__name__)

AdapterFactory = Callable[[str, Settings], BaseUpstreamAdapter]

JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}

def default_adapter_factory(api_key: str, settings: Settings) -> BaseUpstreamAdapter:
    return GeminiAdapter(
        api_key=api_key,
        model=settings.model,
        endpoint=settings.endpoint,
        timeout=settings.timeout,
    )

@dataclass
class GatewayResponse:
    status: int
    body: Any
    headers: Dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

class AnalysisGateway:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or load_settings()
        self._adapter_factory = adapter_factory or default_adapter_factory
        self._retry = RetryController(self.settings.retry, sleep=sleep)

    def handle(
        self,
        method: str,
        body: Any,
        environ: Optional[Mapping[str, str]] = None,
        request_id: Optional[str] = None,
    ) -> GatewayResponse:
        t0 = time.time()
        api_key = ""

        try:
            log_step(logger, "1", f"method check request_id={request_id}")
            if (method or "").strip().upper() != "POST":
                raise MethodNotAllowed()

            log_step(logger, "2", "credential check")
            api_key = read_credential(self.settings, environ)
            if not api_key:
                raise MissingCredential()

            log_step(logger, "3", "parse and classify")
            req = parse_request(body)
            prompt = build_prompt(req)
            logger.info("category=%s shape=%s", req.category.value, prompt.expected_shape.value)

            log_step(logger, "4", "call upstream")
            adapter = self._adapter_factory(api_key, self.settings)
            result = self._retry.run(lambda: adapter.invoke(prompt))
            if result.usage:
                logger.info("usage=%s", result.usage)

            log_step(logger, "5", "normalize")
            normalized = normalize_response(result.raw_text, prompt)

            logger.info("done status=200 kind=%s total_ms=%d", normalized.kind, int((time.time() - t0) * 1000))
            return GatewayResponse(status=200, body=normalized.to_body())

        except Exception as e:
            report = to_failure_report(e, secret=api_key)
            if not isinstance(e, GatewayError):
                logger.exception("AnalysisGateway.handle failed: %s", type(e).__name__)
            elif report.http_status >= 500:
                logger.error("Handler Error (%s): %s", type(e).__name__, report.message)
            else:
                logger.warning("Request rejected (%d): %s", report.http_status, report.message)
            return GatewayResponse(status=report.http_status, body=report.to_body())
