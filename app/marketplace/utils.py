from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from flask import abort, request

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def json_body() -> dict[str, Any]:
    """Request body as a dict; 400 for anything that is not a JSON object."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
        raw = request.get_data(cache=True).strip()
        # get_json() also returns None for a literal null body
        if raw == b"null":
            abort(400, description="Request body must be a JSON object.")
        if raw:
            abort(400, description="Request body must be valid JSON.")
    if not isinstance(payload, dict):
        abort(400, description="Request body must be a JSON object.")
    return payload


def clean_str(value: Any) -> str | None:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    return str(value).strip() or None


def parse_positive_int(value: Any) -> int | None:
    """Positive integer from JSON (int or digit string). None if invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
        return n if n > 0 else None
    return None
