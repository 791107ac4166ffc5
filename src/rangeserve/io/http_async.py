"""Remote file handle over httpx, for use inside an event loop."""

from typing import Mapping, Optional

import httpx

from .base import RemoteMetadata


class AsyncRemoteFile:
    """Async counterpart of ``RemoteFile``; the HEAD happens on ``__aenter__``.

    The handle owns its httpx client unless one is passed in. An
    AsyncClient is bound to the event loop it was first used on, so it is
    not shared module-wide.
    """

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 30):
        self.url = url
        self.requests_made = 0
        self.metadata: Optional[RemoteMetadata] = None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def content_length(self) -> Optional[int]:
        return self.metadata.content_length if self.metadata else None

    @property
    def etag(self) -> Optional[str]:
        return self.metadata.etag if self.metadata else None

    @property
    def accept_ranges(self) -> bool:
        return self.metadata.accept_ranges if self.metadata else False

    async def _request(self, method: str, headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
        self.requests_made += 1
        try:
            response = await self._client.request(method, self.url, headers=dict(headers or {}))
        except httpx.RequestError as e:
            raise IOError(f"{method} {self.url} failed: {e}")
        if method == "HEAD" and response.status_code >= 400:
            raise IOError(f"HEAD {self.url} failed with status {response.status_code}")
        return response

    async def head(self) -> RemoteMetadata:
        if self.metadata is None:
            self.metadata = RemoteMetadata.from_headers((await self._request("HEAD")).headers)
        return self.metadata

    async def get(self, headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
        """GET with extra request headers; any status is returned as is."""
        return await self._request("GET", headers)

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        try:
            await self.head()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
