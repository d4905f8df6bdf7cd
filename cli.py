"""Simple CLI for the analysis gateway.

Usage examples:
- JSON string input:
  python cli.py "{\"type\":\"market_data\"}"

- JSON file input (prefix with @):
  python cli.py @request.json

- Pretty print:
  python cli.py @request.json --pretty

Notes:
- GEMINI_API_KEY must be set in the environment.
- Exit code is 0 on HTTP 200, 1 otherwise.
"""
import argparse
import json
import sys
from pathlib import Path

from src.analysis_gateway.client import AnalysisGateway
from src.analysis_gateway.logging_util import get_logger

logger = get_logger(__name__)

def _load_input(spec: str) -> str:
    if spec.startswith("@"):
        p = Path(spec[1:])
        return p.read_text(encoding="utf-8")
    return spec

def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("input", help="JSON string or @path/to/json")
    ap.add_argument("--method", default="POST", help="HTTP method to simulate")
    ap.add_argument("--pretty", action="store_true", help="Pretty print the output JSON")
    args = ap.parse_args()

    try:
        body = _load_input(args.input)
    except OSError as e:
        logger.error("Failed to read input: %s", e)
        return 2

    resp = AnalysisGateway().handle(args.method, body, request_id="CLI")

    out = {"status": resp.status, "body": resp.body}
    if args.pretty:
        print(json.dumps(out, ensure_ascii=False, indent=2))
    else:
        print(json.dumps(out, ensure_ascii=False))
    return 0 if resp.status == 200 else 1

if __name__ == "__main__":
    sys.exit(main())
