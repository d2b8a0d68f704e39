"""Redact sensitive data from structured logs and audit rows. Never log passwords, tokens or metrics secrets."""
import re
from typing import Any

# Keys (case-insensitive substring match) that must be redacted in dicts
REDACT_KEYS = frozenset({
    "password", "token", "secret", "authorization", "cookie", "api_key",
})

_BEARER = re.compile(r"^bearer\s+", re.IGNORECASE)
_JWT_LIKE = re.compile(r"^[A-Za-z0-9_-]+\.([A-Za-z0-9_-]+)\.")


def _redact_key(key: str) -> bool:
    k = key.lower()
    return any(r in k for r in REDACT_KEYS)


def redact_for_log(obj: Any) -> Any:
    """Return a copy of obj safe for logging: sensitive keys replaced with '[REDACTED]'."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return {
            k: "[REDACTED]" if isinstance(k, str) and _redact_key(k) else redact_for_log(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return type(obj)(redact_for_log(x) for x in obj)
    if isinstance(obj, str) and _looks_like_secret(obj):
        return "[REDACTED]"
    return obj


def _looks_like_secret(s: str) -> bool:
    if len(s) > 64 and _JWT_LIKE.match(s):
        return True
    return bool(_BEARER.match(s))
