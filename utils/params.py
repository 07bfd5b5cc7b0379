import datetime as _dt
import math
import uuid as _uuid
from typing import Any, Optional

from services.errors import InvalidInput


def parse_uuid(value: Any, label: str) -> _uuid.UUID:
    try:
        return _uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid {label}")


def optional_uuid(value: Any, label: str) -> Optional[_uuid.UUID]:
    if value in (None, ""):
        return None
    return parse_uuid(value, label)


def optional_float(value: Any, label: str) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{label} must be a number")
    if not math.isfinite(number):
        raise InvalidInput(f"{label} must be a finite number")
    return number


def optional_int(value: Any, label: str) -> Optional[int]:
    number = optional_float(value, label)
    if number is None:
        return None
    if not number.is_integer():
        raise InvalidInput(f"{label} must be a whole number")
    return int(number)


def parse_ymd(s: str) -> _dt.date:
    try:
        y, m, d = (int(p) for p in s.strip().split("-"))
        return _dt.date(y, m, d)
    except Exception:
        raise InvalidInput(f"Invalid date (expected YYYY-MM-DD): {s!r}")


def json_body(req) -> dict:
    try:
        body = req.get_json()
    except ValueError:
        raise InvalidInput("Invalid JSON body")
    if not isinstance(body, dict):
        raise InvalidInput("Expected a JSON object")
    return body
