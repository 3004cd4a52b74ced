"""Invalidation event schema enforcement."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator

ORIGIN_VALUES = ["default", "blocks", "theme", "custom"]

INVALIDATION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": [
        "occurred_at",
        "reason",
        "origins",
        "style_version",
        "block_version",
    ],
    "properties": {
        "occurred_at": {"type": "string", "format": "date-time"},
        "reason": {"type": "string", "enum": ["clear", "drift", "external_event"]},
        "origins": {
            "type": "array",
            "items": {"type": "string", "enum": ORIGIN_VALUES},
            "uniqueItems": True,
        },
        "style_version": {"type": "integer", "minimum": 0},
        "block_version": {"type": "integer", "minimum": 0},
        "feature": {"type": ["string", "null"]},
        "detail": {"type": ["string", "null"]},
    },
}

_validator = Draft7Validator(INVALIDATION_SCHEMA)


def validate_invalidation(payload: Dict[str, Any]) -> None:
    errors = sorted(_validator.iter_errors(payload), key=lambda e: e.path)
    if errors:
        messages = ", ".join(error.message for error in errors)
        raise ValueError(f"invalidation record validation failed: {messages}")


@dataclass
class InvalidationRecord:
    reason: str
    origins: List[str]
    style_version: int
    block_version: int
    feature: Optional[str] = None
    detail: Optional[str] = None
    occurred_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "occurred_at": self.occurred_at,
            "reason": self.reason,
            "origins": list(self.origins),
            "style_version": self.style_version,
            "block_version": self.block_version,
            "feature": self.feature,
            "detail": self.detail,
        }
        validate_invalidation(payload)
        return payload
