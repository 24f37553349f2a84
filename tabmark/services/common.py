from __future__ import annotations

from urllib.parse import urlparse

from tabmark.errors import ValidationError

# Distinguishes "field omitted" from an explicit null in update payloads.
MISSING = object()

_HOST_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def is_valid_url(value) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = urlparse(value.strip())
        parsed.port
    except ValueError:
        return False
    scheme = parsed.scheme.lower()
    if not scheme:
        return False
    if scheme in _HOST_SCHEMES:
        return bool(parsed.hostname)
    return bool(parsed.netloc or parsed.path)


def require_string(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} must be a non-empty string")
    return value.strip()


def optional_string(payload: dict, key: str):
    if key not in payload:
        return MISSING
    value = payload[key]
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip()


def optional_string_list(payload: dict, key: str):
    value = payload.get(key)
    if value is None:
        return MISSING
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{key} must be an array of strings")
    seen: list[str] = []
    for item in value:
        item = item.strip()
        if item and item not in seen:
            seen.append(item)
    return seen


def require_url(payload: dict, key: str = "url") -> str:
    value = payload.get(key)
    if not is_valid_url(value):
        raise ValidationError(f"{key} must be a valid URL address")
    return value.strip()


def require_index(payload: dict, key: str = "newOrderIndex") -> int:
    value = payload.get(key)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value
