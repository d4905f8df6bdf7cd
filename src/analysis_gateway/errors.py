"""Gateway error taxonomy and translation to user-facing failures."""
from __future__ import annotations

from typing import Optional

from .types import FailureReport

GENERIC_UPSTREAM_MESSAGE = "API通信エラー"
INTERNAL_ERROR_MESSAGE = "サーバー内部でエラーが発生しました。時間をおいて再度お試しください。"
RATE_LIMITED_MESSAGE = (
    "AIへのリクエストが混み合っています。1分ほど時間をおいてから再度お試しください。"
)


class GatewayError(Exception):
    http_status = 500

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status


class ConfigError(GatewayError):
    pass


class MethodNotAllowed(GatewayError):
    http_status = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class InvalidPayload(GatewayError):
    http_status = 400

    def __init__(self, message: str = "リクエストの形式が正しくありません。"):
        super().__init__(message)


class MissingCredential(GatewayError):
    http_status = 500

    def __init__(self, message: str = "APIキーが設定されていません。環境変数を確認してください。"):
        super().__init__(message)


class UpstreamTransportError(GatewayError):
    """Non-retryable upstream failure; status is the upstream's own."""


class UpstreamRateLimited(GatewayError):
    http_status = 429

    def __init__(self, message: str = RATE_LIMITED_MESSAGE, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class UpstreamShapeError(GatewayError):
    """Upstream answered 2xx but the content is not usable."""

    http_status = 500


class InternalError(GatewayError):
    http_status = 500

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE):
        super().__init__(message)


def redact(message: str, secret: Optional[str]) -> str:
    if not secret:
        return message
    return message.replace(secret, "***")


def to_failure_report(exc: BaseException, secret: Optional[str] = None) -> FailureReport:
    if isinstance(exc, GatewayError):
        return FailureReport(http_status=exc.http_status, message=redact(exc.message, secret))
    return FailureReport(http_status=InternalError.http_status, message=INTERNAL_ERROR_MESSAGE)
