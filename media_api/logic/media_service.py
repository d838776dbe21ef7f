"""Media record operations behind the HTTP routes.

Each function takes the shared store handle explicitly and keeps no state
between calls. Failures are raised as RecordError subclasses and never
retried here; a PATCH that fails at any stage performs no store write.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from media_api.logic.conversion import into_typed_record
from media_api.logic.document_store import DocumentStore
from media_api.logic.errors import Conflict
from media_api.logic.etag import WILDCARD
from media_api.logic.identifiers import id_from_hashed_string, resolve_guid, split_and_check_guid
from media_api.logic.jobs import ASR, request_job
from media_api.logic.json_patch import apply_json_patch, parse_patch
from media_api.logic.upstream import UpstreamFetcher, UpstreamResponse
from media_api.models.media import Media
from media_api.models.record import PutResponse, Record

logger = logging.getLogger(__name__)

REVISION_MODE_STRICT = "strict"
REVISION_MODE_OVERWRITE = "overwrite"


async def _expected_revision(store: DocumentStore, guid: str, if_match: Optional[str]) -> Optional[str]:
    if if_match is None:
        return None
    if if_match == WILDCARD:
        # "*" only requires that the document exists
        return (await store.get_doc(guid)).revision
    return if_match


async def get_media(store: DocumentStore, raw_id: str) -> Record[Media]:
    guid = resolve_guid(Media.type_tag, raw_id)
    return await store.get_record(guid, Media)


async def create_media(store: DocumentStore, media: Media, transcribe: bool = False) -> PutResponse:
    """Create (or idempotently re-create) the record addressed by its content URL."""
    record = Record.from_id_and_value(id_from_hashed_string(media.content_url), media)
    if transcribe:
        request_job(record, ASR, True)
    res = await store.put_record(record)
    logger.info("media.created", extra={"record_id": res.id, "transcribe": transcribe})
    return res


async def put_media(
    store: DocumentStore,
    raw_id: str,
    media: Media,
    if_match: Optional[str] = None,
) -> PutResponse:
    """Replace the value at `raw_id`; metadata starts over empty."""
    guid = resolve_guid(Media.type_tag, raw_id)
    _, local_id = split_and_check_guid(Media.type_tag, guid)
    record = Record.from_id_and_value(local_id, media)
    expected = await _expected_revision(store, guid, if_match)
    res = await store.put_record(record, expected_revision=expected)
    logger.info("media.replaced", extra={"record_id": res.id, "conditional": expected is not None})
    return res


async def patch_media(
    store: DocumentStore,
    raw_id: str,
    patch: Any,
    if_match: Optional[str] = None,
    revision_mode: str = REVISION_MODE_STRICT,
) -> PutResponse:
    """Apply a JSON Patch to the stored value and write the re-validated record.

    In strict mode the revision read before patching is required on write,
    so a concurrent modification in between fails with Conflict. In
    overwrite mode the write is unconditional unless If-Match names one.
    """
    guid = resolve_guid(Media.type_tag, raw_id)
    operations = parse_patch(patch)
    existing = await store.get_doc(guid)
    if if_match not in (None, WILDCARD) and if_match != existing.revision:
        logger.info("media.patch.precondition_failed", extra={"record_id": guid, "if_match": if_match})
        raise Conflict(f"revision mismatch for {guid!r}", record_id=guid, expected_revision=if_match)
    patched = apply_json_patch(existing, operations)
    record = into_typed_record(patched, Media)
    if revision_mode == REVISION_MODE_STRICT or if_match not in (None, WILDCARD):
        expected = existing.revision
    else:
        expected = None
    res = await store.put_record(record, expected_revision=expected)
    logger.info(
        "media.patch.applied",
        extra={"record_id": res.id, "operations": len(operations), "revision_mode": revision_mode},
    )
    return res


async def open_media_data(
    store: DocumentStore,
    fetcher: UpstreamFetcher,
    raw_id: str,
    headers: Mapping[str, str],
) -> UpstreamResponse:
    record = await get_media(store, raw_id)
    return await fetcher.open(record.value.content_url, headers)


__all__ = [
    "REVISION_MODE_STRICT",
    "REVISION_MODE_OVERWRITE",
    "get_media",
    "create_media",
    "put_media",
    "patch_media",
    "open_media_data",
]
