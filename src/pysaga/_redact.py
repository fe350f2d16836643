"""Helpers for safe debug logging.

Token exchanges carry client secrets and bearer tokens, and feed payloads
can hold thousands of rows.  :func:`redact_for_log` masks the former and
summarises the latter before anything reaches DEBUG logs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

# Compared after lower-casing and dropping "_" / "-", so "client_secret",
# "clientSecret" and "Client-Secret" all match.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "clientsecret",
        "accesstoken",
        "refreshtoken",
        "idtoken",
        "token",
        "authorization",
        "password",
        "cookie",
    }
)

_BEARER_RE = re.compile(r"(?i)\b(bearer)\s+\S+")


def _key_is_sensitive(key: str) -> bool:
    return key.lower().replace("_", "").replace("-", "") in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 512, max_items: int = 20, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs.

    Sequences longer than *max_items* keep their first items plus a count
    of what was left out.  The limit applies at every nesting level, so
    rows of a long table are trimmed too.
    """
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        masked = _BEARER_RE.sub(r"\1 <redacted>", value)
        if len(masked) > max_string:
            return f"{masked[:max_string]}…<truncated>"
        return masked

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): "<redacted>"
            if _key_is_sensitive(str(k))
            else redact_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence):
        items = [
            redact_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for v in value[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    return repr(value)
