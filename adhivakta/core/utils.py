from __future__ import annotations

import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from adhivakta.core.errors import ValidationError

E = TypeVar("E", bound=Enum)

_TRUE_VALUES = {"1", "true", "yes", "on", "si"}


def lookup(payload: dict[str, Any], key: str, *aliases: str) -> tuple[bool, Any]:
    for candidate in (key, *aliases):
        if candidate in payload:
            return True, payload[candidate]
    return False, None


def clean_text(value: Any, field: str, max_length: int | None = None, required: bool = False) -> str:
    if value is None:
        text = ""
    elif isinstance(value, (str, int, float)):
        text = str(value).strip()
    else:
        raise ValidationError.for_field(field, "Must be text")
    if required and not text:
        raise ValidationError.for_field(field, "This field is required")
    if max_length is not None and len(text) > max_length:
        raise ValidationError.for_field(field, f"Must be at most {max_length} characters")
    return text


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def parse_int(value: Any, field: str, minimum: int | None = None) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError.for_field(field, "Must be a whole number")
    try:
        number = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError.for_field(field, "Must be a whole number") from exc
    if minimum is not None and number < minimum:
        raise ValidationError.for_field(field, f"Must be at least {minimum}")
    return number


def parse_datetime(value: Any, field: str) -> datetime | None:
    """Parse ISO-8601 input into a naive UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError.for_field(field, "Must be an ISO-8601 date and time") from exc
    else:
        raise ValidationError.for_field(field, "Must be an ISO-8601 date and time")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            return date.fromisoformat(raw[:10])
        except ValueError as exc:
            raise ValidationError.for_field(field, "Must be an ISO-8601 date") from exc
    raise ValidationError.for_field(field, "Must be an ISO-8601 date")


def parse_enum(enum_cls: type[E], value: Any, field: str, default: E | None = None) -> E | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, enum_cls):
        return value
    raw = str(value).strip()
    for member in enum_cls:
        if raw.lower() in {str(member.value).lower(), member.name.lower()}:
            return member
    allowed = ", ".join(str(member.value) for member in enum_cls)
    raise ValidationError.for_field(field, f"Must be one of: {allowed}")


def parse_id(value: Any, field: str) -> int | None:
    if isinstance(value, dict):
        value = value.get("id", value.get("_id"))
    return parse_int(value, field, minimum=1)


def as_list(value: Any) -> list[Any]:
    """Coerce loosely shaped input into a list of entries."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        return as_list(decoded)
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    return value if isinstance(value, dict) else {}


def isoformat(value: datetime | date | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat() + ("Z" if value.tzinfo is None else "")
    return value.isoformat()


def parse_paging(filters: dict[str, Any], default_limit: int, max_limit: int) -> tuple[int, int]:
    try:
        page = max(int(filters.get("page") or 1), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(filters.get("limit") or default_limit)
    except (TypeError, ValueError):
        limit = default_limit
    return page, min(max(limit, 1), max_limit)
