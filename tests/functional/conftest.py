"""Functional test fixtures for the media records service.

The app is built in-process with an in-memory store that records every write
attempt, and with an httpx MockTransport standing in for upstream content
hosts. Response bodies are checked against the JSON Schemas under schemas/.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from jsonschema import Draft202012Validator

from media_api.config import AppConfig, StoreConfig
from media_api.logic.document_store import InMemoryDocumentStore
from media_api.main import create_app
from media_api.models.record import PutResponse, UntypedRecord

_ROOT = pathlib.Path(__file__).resolve().parents[2]
SCHEMAS_DIR = _ROOT / "schemas"

AUDIO_BYTES = b"ID3\x04\x00fake-mp3-payload"


class RecordingStore(InMemoryDocumentStore):
    """In-memory store that keeps a log of attempted writes."""

    def __init__(self) -> None:
        super().__init__()
        self.put_calls: List[Tuple[str, Optional[str]]] = []

    async def put_doc(self, doc: UntypedRecord, expected_revision: Optional[str] = None) -> PutResponse:
        self.put_calls.append((doc.id, expected_revision))
        return await super().put_doc(doc, expected_revision)


async def _chunks() -> AsyncIterator[bytes]:
    for start in range(0, len(AUDIO_BYTES), 4):
        yield AUDIO_BYTES[start : start + 4]


def _upstream(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "chunked.example":
        return httpx.Response(200, content=_chunks(), headers={"content-type": "audio/mpeg"})
    if host == "down.example":
        raise httpx.ConnectError("connection refused", request=request)
    if host == "x" and request.url.path == "/a.mp3":
        rng = request.headers.get("range")
        if rng == "bytes=0-2":
            return httpx.Response(
                206,
                content=AUDIO_BYTES[:3],
                headers={
                    "content-type": "audio/mpeg",
                    "content-range": f"bytes 0-2/{len(AUDIO_BYTES)}",
                    "x-internal": "drop-me",
                },
            )
        return httpx.Response(
            200,
            content=AUDIO_BYTES,
            headers={"content-type": "audio/mpeg", "accept-ranges": "bytes", "x-internal": "drop-me"},
        )
    return httpx.Response(404, content=b"not here", headers={"content-type": "text/plain"})


@pytest.fixture()
def memory_config() -> AppConfig:
    return AppConfig(store=StoreConfig(backend="memory"))


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def make_client(memory_config: AppConfig, store: RecordingStore) -> Callable[..., TestClient]:
    def _make(config: Optional[AppConfig] = None, app_store: Any = None) -> TestClient:
        app = create_app(
            config=config or memory_config,
            store=app_store if app_store is not None else store,
            upstream_transport=httpx.MockTransport(_upstream),
        )
        return TestClient(app)

    return _make


@pytest.fixture()
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


def _load_schema(name: str) -> Dict[str, Any]:
    return json.loads((SCHEMAS_DIR / name).read_text(encoding="utf-8"))


@pytest.fixture(scope="session")
def validate() -> Callable[[str, Any], None]:
    """Return a callable asserting that an instance matches a named schema."""

    def _validate(schema_name: str, instance: Any) -> None:
        validator = Draft202012Validator(_load_schema(schema_name))
        errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
        assert not errors, f"{schema_name} violations: {[e.message for e in errors]}"

    return _validate
