"""Conversion between typed and untyped records.

Pure, synchronous transformations; nothing here touches the store.
"""

from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import ValidationError

from media_api.logic.errors import SchemaMismatch, summarize_validation_errors
from media_api.logic.identifiers import split_and_check_guid
from media_api.models.record import Record, TypedValue, UntypedRecord

T = TypeVar("T", bound=TypedValue)


def into_untyped_record(record: Record[Any]) -> UntypedRecord:
    return UntypedRecord(
        id=record.id,
        value=record.value.model_dump(mode="json"),
        meta=record.meta.model_copy(deep=True),
        revision=record.revision,
    )


def into_typed_record(untyped: UntypedRecord, model: Type[T]) -> Record[T]:
    """Validate `untyped.value` against `model`.

    Raises SchemaMismatch with the structural errors when the value does not
    conform, and InvalidIdentifier when the id is outside `model`'s namespace.
    """
    split_and_check_guid(model.type_tag, untyped.id)
    try:
        value = model.model_validate(untyped.value)
    except ValidationError as exc:
        raise SchemaMismatch(
            f"value of {untyped.id!r} does not match {model.__name__}",
            errors=summarize_validation_errors(exc),
            record_id=untyped.id,
        ) from exc
    return Record[model](  # type: ignore[valid-type]
        id=untyped.id,
        value=value,
        meta=untyped.meta.model_copy(deep=True),
        revision=untyped.revision,
    )


__all__ = ["into_untyped_record", "into_typed_record"]
