"""Path helpers using a single canonical separator."""

from __future__ import annotations

import posixpath
import re

SEPARATOR = "/"

_REPEATED = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Normalize a filesystem path to forward slashes.

    Backslashes are converted, repeated separators collapsed, ``.`` and
    ``..`` segments resolved and trailing separators stripped (the root
    stays ``/``).

    Examples:
        >>> normalize_path("/srv//app/")
        '/srv/app'
        >>> normalize_path("C:\\\\www\\\\site\\\\..\\\\app")
        'C:/www/app'
    """
    if not path:
        return ""

    path = _REPEATED.sub(SEPARATOR, path.replace("\\", SEPARATOR))
    normalized = posixpath.normpath(path)
    if normalized == "." and not path.startswith("."):
        return ""
    return normalized


def join_path(base: str, *parts: str | None) -> str:
    """Join path segments onto ``base`` and normalize the result."""
    segments = [base] + [part.strip("/\\") for part in parts if part]
    return normalize_path(SEPARATOR.join(segments))
