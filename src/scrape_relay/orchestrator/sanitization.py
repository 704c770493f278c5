"""Filesystem-safe naming helpers for per-task workspaces."""

from __future__ import annotations

import re

MAX_NAME_BYTES = 255

_SEPARATOR_RUN = re.compile(r"/+")
_ILLEGAL = re.compile(r'[/?<>\\:*|"]')
_CONTROL = re.compile(r"[\x00-\x1f\x80-\x9f]")
_RESERVED = re.compile(r"^\.+$")
_WINDOWS_RESERVED = re.compile(r"(?i)^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$")
_WINDOWS_TRAILING = re.compile(r"[. ]+$")


def sanitize_filename(value: str, *, replacement: str = "") -> str:
    """Remove characters and names that are illegal on common filesystems."""

    sanitized = _ILLEGAL.sub(replacement, value)
    sanitized = _CONTROL.sub(replacement, sanitized)
    sanitized = _RESERVED.sub(replacement, sanitized)
    sanitized = _WINDOWS_RESERVED.sub(replacement, sanitized)
    # Trailing dots and spaces are stripped after truncation.
    sanitized = truncate_utf8(sanitized, MAX_NAME_BYTES)
    return _WINDOWS_TRAILING.sub(replacement, sanitized)


def identifier_dirname(identifier: str) -> str:
    """Derive a directory name from a URL: ``http://a.b/c`` -> ``http_a.b_c``."""

    collapsed = _SEPARATOR_RUN.sub("_", identifier).replace(":", "")
    return sanitize_filename(collapsed)


def truncate_utf8(value: str, max_bytes: int) -> str:
    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value
    return encoded[:max_bytes].decode("utf-8", errors="ignore")
