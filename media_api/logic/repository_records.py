"""SQL-backed document store.

Documents live in the `documents` table (see db/migrations). Blocking
SQLAlchemy calls run in a worker thread so they do not stall the event loop.
Writes are compare-and-set on the stored revision, so concurrent PUT/PATCH
on the same id surface as Conflict rather than lost updates.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import anyio
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError

from media_api.logic.document_store import DocumentStore, canonical_body, next_revision, type_of
from media_api.logic.errors import Conflict, NotFound, StoreUnavailable
from media_api.models.record import PutResponse, RecordMeta, UntypedRecord

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class SqlDocumentStore(DocumentStore):
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    async def get_doc(self, guid: str) -> UntypedRecord:
        return await anyio.to_thread.run_sync(self._get_doc_sync, guid)

    async def put_doc(self, doc: UntypedRecord, expected_revision: Optional[str] = None) -> PutResponse:
        return await anyio.to_thread.run_sync(self._put_doc_sync, doc, expected_revision)

    async def close(self) -> None:
        await anyio.to_thread.run_sync(self.engine.dispose)

    def _get_doc_sync(self, guid: str) -> UntypedRecord:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sql_text("SELECT rev, value_json, meta_json FROM documents WHERE id = :id"),
                    {"id": guid},
                ).first()
        except DBAPIError as exc:
            logger.error("store.get.failed record_id=%s", guid, exc_info=True)
            raise StoreUnavailable("document store read failed", record_id=guid) from exc
        if row is None:
            raise NotFound(f"no document at {guid!r}", record_id=guid)
        rev, value_json, meta_json = row
        return UntypedRecord(
            id=guid,
            value=json.loads(value_json),
            meta=RecordMeta.model_validate(json.loads(meta_json)),
            revision=str(rev),
        )

    def _put_doc_sync(self, doc: UntypedRecord, expected_revision: Optional[str]) -> PutResponse:
        meta = doc.meta.model_dump(mode="json")
        body = canonical_body(doc.value, meta)
        params = {
            "id": doc.id,
            "typ": type_of(doc.id),
            "value_json": json.dumps(doc.value, ensure_ascii=False),
            "meta_json": json.dumps(meta, ensure_ascii=False),
            "updated_at": _now_iso(),
        }
        try:
            with self.engine.begin() as conn:
                row = conn.execute(
                    sql_text("SELECT rev FROM documents WHERE id = :id"),
                    {"id": doc.id},
                ).first()
                current_rev = str(row[0]) if row is not None else None
                if expected_revision is not None and current_rev != expected_revision:
                    raise self._conflict(doc.id, expected_revision, current_rev)
                rev = next_revision(current_rev, body)
                if current_rev is None:
                    conn.execute(
                        sql_text(
                            "INSERT INTO documents (id, typ, rev, value_json, meta_json, updated_at) "
                            "VALUES (:id, :typ, :rev, :value_json, :meta_json, :updated_at)"
                        ),
                        {**params, "rev": rev},
                    )
                else:
                    result = conn.execute(
                        sql_text(
                            "UPDATE documents SET typ = :typ, rev = :rev, value_json = :value_json, "
                            "meta_json = :meta_json, updated_at = :updated_at "
                            "WHERE id = :id AND rev = :current_rev"
                        ),
                        {**params, "rev": rev, "current_rev": current_rev},
                    )
                    if result.rowcount != 1:
                        # another writer committed between our read and update
                        raise self._conflict(doc.id, expected_revision, current_rev)
        except IntegrityError as exc:
            # concurrent insert of the same id
            raise self._conflict(doc.id, expected_revision, None) from exc
        except DBAPIError as exc:
            logger.error("store.put.failed record_id=%s", doc.id, exc_info=True)
            raise StoreUnavailable("document store write failed", record_id=doc.id) from exc
        logger.info("store.put", extra={"record_id": doc.id, "revision": rev})
        return PutResponse(id=doc.id, revision=rev)

    @staticmethod
    def _conflict(guid: str, expected: Optional[str], current: Optional[str]) -> Conflict:
        logger.info(
            "store.put.conflict",
            extra={"record_id": guid, "expected": expected, "current": current},
        )
        return Conflict(f"revision mismatch for {guid!r}", record_id=guid, expected_revision=expected)


__all__ = ["SqlDocumentStore"]
