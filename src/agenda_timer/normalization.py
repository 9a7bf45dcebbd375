"""Utilities to normalize activity names and labels."""

from __future__ import annotations

import re
from typing import Optional

MAX_LABEL_LENGTH = 30
_ELLIPSIS = "..."

_WHITESPACE_RUN = re.compile(r"\s{2,}")


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Trim and collapse inner whitespace; empty names become None."""
    if not name:
        return None
    normalized = _WHITESPACE_RUN.sub(" ", name.strip())
    return normalized or None


def truncate_label(name: str, limit: int = MAX_LABEL_LENGTH) -> str:
    if len(name) <= limit:
        return name
    return name[: limit - len(_ELLIPSIS)] + _ELLIPSIS
