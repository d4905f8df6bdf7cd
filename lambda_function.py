"""AWS Lambda entrypoint.

Design goals:
- Keep this file small and stable.
- Delegate all real logic to src/analysis_gateway so the same code runs
  from the CLI and from Lambda.

Expected event shapes:
1) API Gateway REST (v1):
   {"httpMethod": "POST", "body": "{\"type\":\"market_data\"}"}

2) API Gateway HTTP API / Function URL (v2):
   {"requestContext": {"http": {"method": "POST"}}, "body": "...", "isBase64Encoded": false}

3) Direct invoke / local test (POST assumed):
   {"body": "{\"type\":\"market_data\"}"}
   or the event itself is the JSON body:
   {"type": "freeform", "query": "7203"}

Return:
- statusCode: per the gateway (200 / 400 / 405 / 429 / 5xx)
- body: JSON string of the success payload or {"error": ...}
"""
import base64
import binascii
import json
from typing import Any, Dict, Optional, Tuple

from src.analysis_gateway.client import AnalysisGateway
from src.analysis_gateway.logging_util import get_logger

logger = get_logger(__name__)

_gateway: Optional[AnalysisGateway] = None

def _get_gateway() -> AnalysisGateway:
    global _gateway
    if _gateway is None:
        _gateway = AnalysisGateway()
    return _gateway

def _extract_request(event: Dict[str, Any]) -> Tuple[str, Any]:
    if "httpMethod" in event:
        method = event.get("httpMethod") or ""
    elif isinstance(event.get("requestContext"), dict) and "http" in event["requestContext"]:
        method = (event["requestContext"].get("http") or {}).get("method") or ""
    else:
        # Direct invoke: {"body": "<json>"} or the event is the body itself
        return "POST", event.get("body", event)

    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            # Left undecoded; the parser rejects it as a bad payload
            logger.warning("base64 body decode failed: %s", e)
    return method, body

def lambda_handler(event: Dict[str, Any], context: Any):
    try:
        method, body = _extract_request(event or {})
        resp = _get_gateway().handle(method, body, request_id=getattr(context, "aws_request_id", None))
        return {
            "statusCode": resp.status,
            "headers": resp.headers,
            "body": json.dumps(resp.body, ensure_ascii=False),
        }

    except Exception as e:
        logger.exception("lambda_handler fatal error: %s", e)
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json; charset=utf-8"},
            "body": json.dumps({"error": "サーバー内部でエラーが発生しました。"}, ensure_ascii=False),
        }
