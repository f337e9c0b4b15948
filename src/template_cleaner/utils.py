"""Shared helpers — hashing, timestamps, sizes."""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone
from pathlib import Path

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*, or ``""`` if it cannot be read."""
    h = hashlib.sha256()
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(8192), b""):
                h.update(chunk)
    except OSError:
        return ""
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def format_file_size(size: int) -> str:
    """Human-readable size: ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"
