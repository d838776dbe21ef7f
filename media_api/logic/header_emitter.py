"""Centralised ETag header emitter.

Route handlers never assign ETag headers directly; they call
`emit_etag_headers` so the header and its CORS exposure stay consistent.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Response

from media_api.logic.etag import revision_etag

logger = logging.getLogger(__name__)

EXPOSED_HEADERS = ["ETag", "X-Request-Id"]


def emit_etag_headers(response: Response, revision: Optional[str]) -> None:
    """Set `ETag` from a store revision and advertise it to CORS clients."""
    if not revision:
        return
    response.headers["ETag"] = revision_etag(revision)
    existing = response.headers.get("Access-Control-Expose-Headers", "")
    tokens = [t.strip() for t in existing.split(",") if t.strip()]
    for name in EXPOSED_HEADERS:
        if name not in tokens:
            tokens.append(name)
    response.headers["Access-Control-Expose-Headers"] = ", ".join(tokens)
    logger.debug("etag.emit", extra={"revision": revision})


__all__ = ["EXPOSED_HEADERS", "emit_etag_headers"]
