"""Structured log event helpers shared by engine and API."""

from __future__ import annotations

import json
import logging
from typing import Any


def dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit one compact JSON line ``{"event": ..., **fields}``."""

    if not logger.isEnabledFor(level):
        return
    logger.log(level, dump_json({"event": event, **fields}))
