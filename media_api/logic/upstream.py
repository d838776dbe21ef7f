"""Read-through fetch of a record's content URL.

Opens a streamed GET against the upstream with httpx, forwarding the
client's range and conditional headers, and hands back the status, a
filtered header set and a byte iterator. Transport failures raise
UpstreamFetchFailed; upstream HTTP statuses are passed through unchanged.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, Mapping, Optional

import httpx

from media_api.logic.errors import UpstreamFetchFailed

logger = logging.getLogger(__name__)

HEADERS_REQUEST = (
    "accept",
    "accept-encoding",
    "range",
    "if-range",
    "if-none-match",
    "if-modified-since",
)

HEADERS_RESPONSE = (
    "content-type",
    "content-length",
    "content-range",
    "content-encoding",
    "accept-ranges",
    "etag",
    "last-modified",
    "cache-control",
)


def copy_headers(source: Mapping[str, str], names: tuple[str, ...]) -> Dict[str, str]:
    lowered = {str(k).lower(): v for k, v in source.items()}
    return {name: lowered[name] for name in names if name in lowered}


class UpstreamResponse:
    def __init__(self, client: httpx.AsyncClient, response: httpx.Response, url: str) -> None:
        self._client = client
        self._response = response
        self.url = url
        self.status_code = response.status_code
        self.headers = copy_headers(response.headers, HEADERS_RESPONSE)
        self._closed = False
        if response.is_stream_consumed:
            # body was buffered and decoded by the transport
            self.headers.pop("content-encoding", None)
            self.headers["content-length"] = str(len(response.content))

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            if self._response.is_stream_consumed:
                yield self._response.content
            else:
                async for chunk in self._response.aiter_raw():
                    yield chunk
        except httpx.HTTPError as exc:
            logger.error("upstream.stream_failed url=%s", self.url, exc_info=True)
            raise UpstreamFetchFailed(f"upstream stream failed: {exc}", url=self.url) from exc
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        await self._client.aclose()


class UpstreamFetcher:
    def __init__(self, timeout_seconds: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def open(self, url: str, headers: Mapping[str, str]) -> UpstreamResponse:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self.transport,
            follow_redirects=True,
        )
        try:
            request = client.build_request("GET", url, headers=copy_headers(headers, HEADERS_REQUEST))
            response = await client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            await client.aclose()
            logger.warning("upstream.fetch_failed", extra={"url": url, "error": str(exc)})
            raise UpstreamFetchFailed(f"could not fetch {url}: {exc}", url=url) from exc
        logger.info("upstream.fetched", extra={"url": url, "status": response.status_code})
        return UpstreamResponse(client, response, url)


__all__ = [
    "HEADERS_REQUEST",
    "HEADERS_RESPONSE",
    "copy_headers",
    "UpstreamResponse",
    "UpstreamFetcher",
]
