"""Pydantic model for media payloads."""

from __future__ import annotations

from typing import ClassVar

from pydantic import ConfigDict, Field

from media_api.models.record import TypedValue


class Media(TypedValue):
    type_tag: ClassVar[str] = "media"

    model_config = ConfigDict(extra="forbid")

    content_url: str
    content_type: str | None = None
    # seconds
    duration: float | None = Field(default=None, ge=0)
    # bytes
    size: int | None = Field(default=None, ge=0)
    name: str | None = None
    transcript: str | None = None


__all__ = ["Media"]
