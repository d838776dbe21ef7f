"""Pre-body preconditions middleware.

Rejects writes to media routes whose Content-Type is not JSON before any
body parsing or dependency evaluation happens:
- POST/PUT accept `application/json`
- PATCH accepts `application/json` and `application/json-patch+json`
"""

from __future__ import annotations

import json
import re

from fastapi import FastAPI

from media_api.logic.problem_factory import problem_pre_request_content_type_unsupported

JSON_TYPES = frozenset({"application/json"})
PATCH_TYPES = frozenset({"application/json", "application/json-patch+json"})

_MEDIA_PATH_RE = re.compile(r"/api/v1/media(/.*)?")


def _content_type_base(scope) -> str:  # type: ignore[no-untyped-def]
    for k, v in scope.get("headers") or []:
        if k.lower() == b"content-type":
            return v.decode("latin-1", errors="ignore").split(";", 1)[0].strip().lower()
    return ""


class PreconditionsMiddleware:
    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        method = str(scope.get("method") or "").upper()
        path = str(scope.get("path") or "")
        if method not in {"POST", "PUT", "PATCH"} or not _MEDIA_PATH_RE.fullmatch(path):
            await self.app(scope, receive, send)
            return

        allowed = PATCH_TYPES if method == "PATCH" else JSON_TYPES
        if _content_type_base(scope) in allowed:
            await self.app(scope, receive, send)
            return

        body = json.dumps(problem_pre_request_content_type_unsupported(allowed)).encode("utf-8")
        await send(
            {
                "type": "http.response.start",
                "status": 415,
                "headers": [
                    (b"content-type", b"application/problem+json"),
                    (b"content-length", str(len(body)).encode("latin-1")),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})


__all__ = ["PreconditionsMiddleware", "JSON_TYPES", "PATCH_TYPES"]
