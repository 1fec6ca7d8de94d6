from __future__ import annotations

import json
import secrets
from typing import Any

REFERENCE_ID_LENGTH = 8


def new_reference_id() -> str:
    """Return a random 8-character hex token used to correlate a write."""
    return secrets.token_hex(REFERENCE_ID_LENGTH // 2)


def parse_json_object(value: str, what: str = "value") -> dict[str, Any]:
    data = json.loads(value)
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    return data


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, default=str)
