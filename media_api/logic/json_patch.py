"""JSON Patch (RFC 6902) over untyped document trees.

Patch documents are validated with pydantic and applied with `jsonpatch`.
Operations run in order against a deep copy of the document, so a failing
operation leaves the caller's document untouched. Library errors are mapped
onto the record error kinds: unusable locations raise PatchPathNotFound,
`test` mismatches raise PatchTestFailed and malformed patches raise
InvalidPatch.
"""

from __future__ import annotations

import copy
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Optional

import jsonpatch
from jsonpointer import JsonPointer, JsonPointerException
from pydantic import BaseModel, Field, JsonValue, TypeAdapter, ValidationError, field_validator, model_validator

from media_api.logic.errors import (
    InvalidPatch,
    PatchPathNotFound,
    PatchTestFailed,
    RecordError,
    summarize_validation_errors,
)
from media_api.models.record import UntypedRecord

logger = logging.getLogger(__name__)

_OPS_REQUIRING_VALUE = {"add", "replace", "test"}
_OPS_REQUIRING_FROM = {"move", "copy"}


class PatchOperation(BaseModel):
    op: Literal["add", "remove", "replace", "move", "copy", "test"]
    path: str
    value: JsonValue = None
    from_: Optional[str] = Field(default=None, alias="from")

    @field_validator("path", "from_")
    @classmethod
    def pointer_must_be_well_formed(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                JsonPointer(v)
            except JsonPointerException as exc:
                raise ValueError(f"invalid JSON pointer {v!r}: {exc}") from exc
        return v

    @model_validator(mode="after")
    def members_match_op(self) -> "PatchOperation":
        # an explicit "value": null still counts as present
        if self.op in _OPS_REQUIRING_VALUE and "value" not in self.model_fields_set:
            raise ValueError(f"'{self.op}' operation requires a 'value' member")
        if self.op in _OPS_REQUIRING_FROM and self.from_ is None:
            raise ValueError(f"'{self.op}' operation requires a 'from' member")
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


_PATCH_ADAPTER = TypeAdapter(List[PatchOperation])


def parse_patch(raw: Any) -> List[PatchOperation]:
    """Validate a JSON Patch document and return its operations."""
    try:
        return _PATCH_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise InvalidPatch(
            "patch must be an array of JSON Patch operations",
            errors=summarize_validation_errors(exc),
        ) from exc


def parse_pointer(pointer: str) -> List[str]:
    try:
        return JsonPointer(pointer).parts
    except JsonPointerException as exc:
        raise InvalidPatch(str(exc), path=pointer) from exc


def json_equal(a: Any, b: Any) -> bool:
    """Compare two JSON values; booleans never equal numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


class _StrictTestOperation(jsonpatch.TestOperation):
    """`test` that tells booleans apart from numbers."""

    def apply(self, obj: Any) -> Any:
        obj = super().apply(obj)
        if not json_equal(self.pointer.resolve(obj), self.operation["value"]):
            raise jsonpatch.JsonPatchTestFailed(f"value at {self.location!r} does not match")
        return obj


class MediaJsonPatch(jsonpatch.JsonPatch):
    operations = MappingProxyType({**jsonpatch.JsonPatch.operations, "test": _StrictTestOperation})


def _check_targets(operation: PatchOperation) -> None:
    if operation.op == "remove" and operation.path == "":
        raise InvalidPatch("cannot remove the document root", path=operation.path)
    if operation.op == "move" and operation.from_ != operation.path:
        if JsonPointer(operation.path).contains(JsonPointer(operation.from_ or "")):
            raise InvalidPatch(
                f"cannot move {operation.from_!r} into its own child {operation.path!r}",
                path=operation.path,
            )


def _apply_one(document: Any, operation: PatchOperation) -> Any:
    if operation.op == "add" and operation.path == "":
        return copy.deepcopy(operation.value)
    try:
        return MediaJsonPatch([operation.to_wire()]).apply(document, in_place=True)
    except jsonpatch.JsonPatchTestFailed as exc:
        raise PatchTestFailed(str(exc), path=operation.path) from exc
    except (jsonpatch.JsonPatchConflict, JsonPointerException, TypeError) as exc:
        # TypeError: `-` or a member name used where an array index must resolve
        raise PatchPathNotFound(str(exc), path=operation.path) from exc
    except jsonpatch.InvalidJsonPatch as exc:
        # shape was validated by parse_patch; only an unusable target is left
        raise PatchPathNotFound(str(exc), path=operation.path) from exc


def apply_patch(document: Any, operations: List[PatchOperation]) -> Any:
    """Apply `operations` in order and return the patched document.

    `document` is never mutated; on failure the raised error carries the
    index of the failing operation.
    """
    working = copy.deepcopy(document)
    for index, operation in enumerate(operations):
        try:
            _check_targets(operation)
            working = _apply_one(working, operation)
        except RecordError as exc:
            exc.context.setdefault("operation", index)
            logger.info(
                "patch.operation_failed",
                extra={"index": index, "op": operation.op, "path": operation.path, "code": exc.code},
            )
            raise
    return working


def apply_json_patch(record: UntypedRecord, patch: Any) -> UntypedRecord:
    """Patch the value tree of `record`, returning a new untyped record."""
    operations = patch if _is_parsed(patch) else parse_patch(patch)
    value = apply_patch(record.value, operations)
    return UntypedRecord(
        id=record.id,
        value=value,
        meta=record.meta.model_copy(deep=True),
        revision=record.revision,
    )


def _is_parsed(patch: Any) -> bool:
    return isinstance(patch, list) and all(isinstance(op, PatchOperation) for op in patch)


__all__ = [
    "PatchOperation",
    "MediaJsonPatch",
    "parse_patch",
    "parse_pointer",
    "json_equal",
    "apply_patch",
    "apply_json_patch",
]
