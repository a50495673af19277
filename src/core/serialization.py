# src/core/serialization.py - v1
"""Compact JSON serialization shared by the wire format and telemetry."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel


def to_json(value: Any) -> str:
    """Serialize to compact JSON: no whitespace, non-ASCII kept as-is.

    ``{"x": 1}`` becomes ``{"x":1}``. Pydantic models are dumped in JSON mode.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_default)


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
