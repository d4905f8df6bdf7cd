"""Logging utilities.

Key goal:
- Each pipeline step logs clearly so a failed request can be located quickly.
- Keep logging config minimal; the Lambda runtime may already own the root logger.
"""
from __future__ import annotations

import hashlib
import logging
import os

_DEFAULT_LEVEL = os.environ.get("GATEWAY_LOG_LEVEL", "INFO").upper()

def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    # If already configured elsewhere, do not attach handlers again.
    if logger.handlers:
        return logger

    logger.setLevel(_DEFAULT_LEVEL)

    h = logging.StreamHandler()
    fmt = logging.Formatter("[%(levelname)s] %(name)s:%(lineno)d - %(message)s")
    h.setFormatter(fmt)
    logger.addHandler(h)

    return logger

def log_step(logger: logging.Logger, step: str, msg: str):
    logger.info("[STEP %s] %s", step, msg)

def key_fingerprint(key: str) -> str:
    """len + sha8 only; the key itself never reaches a log line."""
    sha8 = hashlib.sha256(key.encode("utf-8")).hexdigest()[:8]
    return f"len={len(key)} sha8={sha8}"
