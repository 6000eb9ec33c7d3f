"""Lexical scanner for derived namespace tokens in free text."""

from __future__ import annotations

import re

from core.tokens.models import MatchSpan

# Word boundary + x + 16 lowercase hex + word boundary, e.g. xe9f7bdfef851a043.
TOKEN_RE = re.compile(r"\bx[0-9a-f]{16}\b", re.ASCII)


def contains_token(text: str) -> bool:
    """Cheap check used before any match objects are allocated."""

    return bool(text) and TOKEN_RE.search(text) is not None


def scan_tokens(text: str) -> list[MatchSpan]:
    """Return non-overlapping token matches ordered by start offset."""

    if not contains_token(text):
        return []
    return [
        MatchSpan(match.start(), match.end(), match.group(0)) for match in TOKEN_RE.finditer(text)
    ]
