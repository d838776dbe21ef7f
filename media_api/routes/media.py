"""Media record endpoints.

`{media_id}` accepts either a bare local id or a full `media/<local-id>`
GUID. Writes answer with `{id, revision}` and an ETag; record-core errors
propagate to the problem+json handler registered in `create_app`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from media_api.guards.precondition import if_match_revision
from media_api.logic import media_service
from media_api.logic.document_store import DocumentStore
from media_api.logic.header_emitter import emit_etag_headers
from media_api.logic.upstream import UpstreamFetcher
from media_api.models.media import Media
from media_api.models.record import PutResponse, Record

router = APIRouter()
logger = logging.getLogger(__name__)

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_fetcher(request: Request) -> UpstreamFetcher:
    return request.app.state.fetcher


def get_revision_mode(request: Request) -> str:
    return request.app.state.config.concurrency.patch_revision_mode


@router.get(
    "/media/{media_id:path}/data",
    summary="Stream the content behind a media record",
    response_class=StreamingResponse,
)
async def get_media_data(
    media_id: str,
    request: Request,
    store: DocumentStore = Depends(get_store),
    fetcher: UpstreamFetcher = Depends(get_fetcher),
):
    upstream = await media_service.open_media_data(store, fetcher, media_id, request.headers)
    return StreamingResponse(
        upstream.iter_bytes(),
        status_code=upstream.status_code,
        headers=upstream.headers,
        background=BackgroundTask(upstream.aclose),
    )


@router.get("/media/{media_id:path}", summary="Get a media record", response_model=Record[Media])
async def get_media(
    media_id: str,
    response: Response,
    store: DocumentStore = Depends(get_store),
):
    record = await media_service.get_media(store, media_id)
    emit_etag_headers(response, record.revision)
    return record


@router.post("/media", summary="Create a media record", status_code=201, response_model=PutResponse)
async def post_media(
    value: Media,
    response: Response,
    transcribe: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    res = await media_service.create_media(store, value, transcribe=transcribe is not None)
    emit_etag_headers(response, res.revision)
    return res


@router.put("/media/{media_id:path}", summary="Replace a media record", response_model=PutResponse)
async def put_media(
    media_id: str,
    value: Media,
    response: Response,
    if_match: Optional[str] = Depends(if_match_revision),
    store: DocumentStore = Depends(get_store),
):
    res = await media_service.put_media(store, media_id, value, if_match=if_match)
    emit_etag_headers(response, res.revision)
    return res


@router.patch("/media/{media_id:path}", summary="Patch a media record (JSON Patch)", response_model=PutResponse)
async def patch_media(
    media_id: str,
    response: Response,
    patch: Any = Body(...),
    if_match: Optional[str] = Depends(if_match_revision),
    store: DocumentStore = Depends(get_store),
    revision_mode: str = Depends(get_revision_mode),
):
    res = await media_service.patch_media(
        store,
        media_id,
        patch,
        if_match=if_match,
        revision_mode=revision_mode,
    )
    emit_etag_headers(response, res.revision)
    return res


__all__ = ["router", "get_store", "get_fetcher", "get_revision_mode"]
