"""Revision <-> ETag helpers.

Store revisions are exposed as strong entity tags (`"<revision>"`). If-Match
values are normalised back to a bare revision before reaching the store.
"""

from __future__ import annotations

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

WILDCARD = "*"


def revision_etag(revision: str) -> str:
    """Return the strong ETag for a store revision."""
    return f'"{revision}"'


def _normalize_etag_token(token: str) -> str:
    t = token.strip()
    if t[:2] in ("W/", "w/"):
        t = t[2:].strip()
    if len(t) >= 2 and t[0] == '"' and t[-1] == '"':
        t = t[1:-1]
    return t.strip()


def split_if_match(raw: Optional[str]) -> List[str]:
    """Split an If-Match header into normalised tokens (quote-aware)."""
    if raw is None:
        return []
    s = str(raw).strip()
    if not s:
        return []
    if s == WILDCARD:
        return [WILDCARD]
    parts: List[str] = []
    buf: List[str] = []
    in_quote = False
    for ch in s:
        if ch == '"':
            in_quote = not in_quote
            buf.append(ch)
        elif ch == "," and not in_quote:
            parts.append("".join(buf))
            buf.clear()
        else:
            buf.append(ch)
    if in_quote:
        raise ValueError("unterminated quote in If-Match")
    parts.append("".join(buf))
    tokens = [_normalize_etag_token(p) for p in parts if p.strip()]
    return [t for t in tokens if t]


def normalize_if_match(raw: Optional[str]) -> Optional[str]:
    """Return the single revision named by If-Match, `*`, or None when absent.

    Raises ValueError when the header is malformed or names more than one
    revision (a write can only be conditioned on one revision).
    """
    tokens = split_if_match(raw)
    if not tokens:
        return None
    if len(tokens) > 1:
        raise ValueError("If-Match must name exactly one revision")
    logger.debug("etag.if_match_normalized", extra={"token": tokens[0]})
    return tokens[0]


__all__ = ["WILDCARD", "revision_etag", "split_if_match", "normalize_if_match"]
