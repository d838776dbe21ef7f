"""Record envelopes shared by every document type.

`Record[T]` holds a typed payload; `UntypedRecord` holds the same envelope
with a schema-free JSON tree as its value. Moving between the two is done by
`media_api.logic.conversion`, never by subclassing.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from media_api.logic.identifiers import guid_for


class TypedValue(BaseModel):
    """Base for payload models stored in a record; subclasses set `type_tag`."""

    type_tag: ClassVar[str] = ""


T = TypeVar("T", bound=TypedValue)


class JobsMeta(BaseModel):
    # job type tag -> None | True (default settings) | settings object
    settings: Dict[str, JsonValue] = Field(default_factory=dict)

    def insert(self, job_type: str, settings: Optional[JsonValue] = True) -> None:
        """Request `job_type`; leaves the other job entries untouched."""
        self.settings[str(job_type)] = settings


class RecordMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    jobs: JobsMeta = Field(default_factory=JobsMeta)


class Record(BaseModel, Generic[T]):
    id: str
    value: T
    meta: RecordMeta = Field(default_factory=RecordMeta)
    revision: Optional[str] = None

    @classmethod
    def from_id_and_value(cls, local_id: str, value: Any) -> "Record[Any]":
        """Build a fresh record; metadata starts empty and no revision is set."""
        model = cls if cls.__pydantic_generic_metadata__["args"] else cls[type(value)]
        return model(id=guid_for(type(value).type_tag, local_id), value=value)


class UntypedRecord(BaseModel):
    id: str
    value: JsonValue = None
    meta: RecordMeta = Field(default_factory=RecordMeta)
    revision: Optional[str] = None


class PutResponse(BaseModel):
    id: str
    revision: str


__all__ = [
    "TypedValue",
    "JobsMeta",
    "RecordMeta",
    "Record",
    "UntypedRecord",
    "PutResponse",
]
