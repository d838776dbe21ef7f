"""Document store contract and the in-memory implementation (test/dev only).

The core needs three operations from a store: fetch an untyped document,
fetch a typed record, and upsert a record returning `{id, revision}`.
Revisions are `"<n>-<sha1>"` where `n` counts writes to the document and the
digest covers its canonical JSON body. When a write names an expected
revision the store rejects it with Conflict unless the stored revision matches.
"""

from __future__ import annotations

import abc
import copy
import hashlib
import json
import logging
from typing import Any, Dict, Optional, Type, TypeVar

from media_api.logic.conversion import into_typed_record, into_untyped_record
from media_api.logic.errors import Conflict, NotFound
from media_api.logic.identifiers import GUID_SEPARATOR
from media_api.models.record import PutResponse, Record, RecordMeta, TypedValue, UntypedRecord

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=TypedValue)


def canonical_body(value: Any, meta: Dict[str, Any]) -> str:
    return json.dumps({"value": value, "meta": meta}, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def next_revision(previous: Optional[str], body: str) -> str:
    """Return the revision following `previous` for a document with `body`."""
    generation = 0
    if previous:
        try:
            generation = int(previous.split("-", 1)[0])
        except ValueError:
            logger.warning("store.revision_unparseable", extra={"revision": previous})
            generation = 0
    digest = hashlib.sha1(body.encode("utf-8")).hexdigest()
    return f"{generation + 1}-{digest}"


def type_of(guid: str) -> str:
    return guid.partition(GUID_SEPARATOR)[0]


class DocumentStore(abc.ABC):
    """Async store facade shared by every request."""

    @abc.abstractmethod
    async def get_doc(self, guid: str) -> UntypedRecord:
        """Fetch a document without schema coercion; raises NotFound."""

    @abc.abstractmethod
    async def put_doc(self, doc: UntypedRecord, expected_revision: Optional[str] = None) -> PutResponse:
        """Upsert `doc`; raises Conflict on a revision mismatch."""

    async def get_record(self, guid: str, model: Type[T]) -> Record[T]:
        return into_typed_record(await self.get_doc(guid), model)

    async def put_record(self, record: Record[Any], expected_revision: Optional[str] = None) -> PutResponse:
        return await self.put_doc(into_untyped_record(record), expected_revision)

    async def close(self) -> None:
        return None


class InMemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._docs: Dict[str, Dict[str, Any]] = {}

    async def get_doc(self, guid: str) -> UntypedRecord:
        stored = self._docs.get(guid)
        if stored is None:
            raise NotFound(f"no document at {guid!r}", record_id=guid)
        return UntypedRecord(
            id=guid,
            value=copy.deepcopy(stored["value"]),
            meta=RecordMeta.model_validate(copy.deepcopy(stored["meta"])),
            revision=stored["rev"],
        )

    async def put_doc(self, doc: UntypedRecord, expected_revision: Optional[str] = None) -> PutResponse:
        current = self._docs.get(doc.id)
        current_rev = current["rev"] if current else None
        if expected_revision is not None and current_rev != expected_revision:
            logger.info(
                "store.put.conflict",
                extra={"record_id": doc.id, "expected": expected_revision, "current": current_rev},
            )
            raise Conflict(
                f"revision mismatch for {doc.id!r}",
                record_id=doc.id,
                expected_revision=expected_revision,
            )
        meta = doc.meta.model_dump(mode="json")
        body = canonical_body(doc.value, meta)
        rev = next_revision(current_rev, body)
        stored = json.loads(body)
        self._docs[doc.id] = {"typ": type_of(doc.id), "rev": rev, "value": stored["value"], "meta": stored["meta"]}
        logger.info("store.put", extra={"record_id": doc.id, "revision": rev})
        return PutResponse(id=doc.id, revision=rev)

    def clear(self) -> None:
        self._docs.clear()


__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "canonical_body",
    "next_revision",
    "type_of",
]
