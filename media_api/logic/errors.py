"""Error taxonomy for record, patch and store operations.

Every failure the core can raise derives from `RecordError`. Each class
carries its HTTP status, a stable problem `code` and whether the failure is
transient (infrastructure) or caused by the caller. The HTTP layer renders
them as problem+json via `media_api.http.problem`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError


def summarize_validation_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    """Reduce pydantic errors to JSON-safe `{loc, msg, type}` entries."""
    return [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": str(err.get("msg", "")),
            "type": str(err.get("type", "")),
        }
        for err in exc.errors()
    ]


class RecordError(Exception):
    status: int = 500
    code: str = "RECORD_ERROR"
    title: str = "Internal Server Error"
    transient: bool = False

    def __init__(self, detail: str = "", **context: Any) -> None:
        super().__init__(detail or self.title)
        self.detail = detail or self.title
        self.context: Dict[str, Any] = dict(context)

    def to_problem(self) -> Dict[str, Any]:
        problem: Dict[str, Any] = {
            "title": self.title,
            "status": self.status,
            "detail": self.detail,
            "code": self.code,
            "transient": self.transient,
        }
        for key, value in self.context.items():
            if value is not None:
                problem[key] = value
        return problem


class NotFound(RecordError):
    status = 404
    code = "RECORD_NOT_FOUND"
    title = "Not Found"


class InvalidIdentifier(RecordError):
    status = 400
    code = "RECORD_ID_INVALID"
    title = "Invalid Identifier"


class SchemaMismatch(RecordError):
    """Untyped payload does not conform to the expected typed schema."""

    status = 422
    code = "RECORD_SCHEMA_MISMATCH"
    title = "Schema Mismatch"

    def __init__(self, detail: str = "", errors: Optional[List[Dict[str, Any]]] = None, **context: Any) -> None:
        super().__init__(detail, errors=list(errors or []), **context)
        self.errors: List[Dict[str, Any]] = list(errors or [])


class InvalidPatch(RecordError):
    status = 400
    code = "PATCH_INVALID"
    title = "Invalid Patch"


class PatchPathNotFound(RecordError):
    status = 422
    code = "PATCH_PATH_NOT_FOUND"
    title = "Patch Path Not Found"


class PatchTestFailed(RecordError):
    status = 409
    code = "PATCH_TEST_FAILED"
    title = "Patch Test Failed"


class Conflict(RecordError):
    status = 409
    code = "RECORD_REVISION_CONFLICT"
    title = "Conflict"


class StoreUnavailable(RecordError):
    status = 503
    code = "STORE_UNAVAILABLE"
    title = "Service Unavailable"
    transient = True


class UpstreamFetchFailed(RecordError):
    status = 502
    code = "UPSTREAM_FETCH_FAILED"
    title = "Bad Gateway"
    transient = True


__all__ = [
    "summarize_validation_errors",
    "RecordError",
    "NotFound",
    "InvalidIdentifier",
    "SchemaMismatch",
    "InvalidPatch",
    "PatchPathNotFound",
    "PatchTestFailed",
    "Conflict",
    "StoreUnavailable",
    "UpstreamFetchFailed",
]
