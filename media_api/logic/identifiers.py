"""Type-qualified record identifiers.

A GUID is `<type_tag>/<local_id>`. Local ids are either supplied by the
caller or derived from content with `id_from_hashed_string`, which makes
creation idempotent for identical content.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Tuple

from media_api.logic.errors import InvalidIdentifier

logger = logging.getLogger(__name__)

GUID_SEPARATOR = "/"

_TYPE_TAG_RE = re.compile(r"[a-z][a-z0-9_.-]*")
# No separator, whitespace or control characters
_LOCAL_ID_RE = re.compile(r"[^/\s\x00-\x1f\x7f]+")


def _check_type_tag(type_tag: str) -> str:
    if not isinstance(type_tag, str) or not _TYPE_TAG_RE.fullmatch(type_tag):
        raise InvalidIdentifier(f"invalid type tag: {type_tag!r}")
    return type_tag


def _check_local_id(local_id: str) -> str:
    if not isinstance(local_id, str) or not _LOCAL_ID_RE.fullmatch(local_id):
        raise InvalidIdentifier(f"invalid local id: {local_id!r}")
    return local_id


def guid_for(type_tag: str, local_id: str) -> str:
    """Return the GUID for `local_id` within the `type_tag` namespace."""
    return f"{_check_type_tag(type_tag)}{GUID_SEPARATOR}{_check_local_id(local_id)}"


def id_from_hashed_string(content: str) -> str:
    """Derive a local id from `content` (lowercase hex SHA-256 of its UTF-8 bytes)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def split_and_check_guid(type_tag: str, raw_id: str) -> Tuple[str, str]:
    """Split `raw_id` into `(type_tag, local_id)`.

    Raises InvalidIdentifier when the id is malformed or belongs to a
    different namespace than `type_tag`.
    """
    if not isinstance(raw_id, str) or GUID_SEPARATOR not in raw_id:
        raise InvalidIdentifier(f"malformed id: {raw_id!r}", expected_type=type_tag)
    typ, _, local_id = raw_id.partition(GUID_SEPARATOR)
    if not typ or not local_id:
        raise InvalidIdentifier(f"malformed id: {raw_id!r}", expected_type=type_tag)
    if typ != type_tag:
        logger.info(
            "identifier.namespace_mismatch",
            extra={"expected_type": type_tag, "actual_type": typ},
        )
        raise InvalidIdentifier(
            f"id {raw_id!r} is not in the {type_tag!r} namespace",
            expected_type=type_tag,
        )
    return _check_type_tag(typ), _check_local_id(local_id)


def resolve_guid(type_tag: str, raw: str) -> str:
    """Accept a bare local id or a full GUID and return the full GUID."""
    if isinstance(raw, str) and GUID_SEPARATOR in raw:
        typ, local_id = split_and_check_guid(type_tag, raw)
        return guid_for(typ, local_id)
    return guid_for(type_tag, raw)


__all__ = [
    "GUID_SEPARATOR",
    "guid_for",
    "id_from_hashed_string",
    "split_and_check_guid",
    "resolve_guid",
]
