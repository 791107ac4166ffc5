"""Remote file handle over requests: HEAD metadata plus conditional GETs."""

from typing import Mapping, Optional

import requests

from .base import RemoteMetadata

_session = None


def _get_session():
    """Shared session so repeated checks reuse connections."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def parse_content_range(value: Optional[str]) -> Optional[tuple[int, int, Optional[int]]]:
    """Parse ``bytes start-end/total`` (total may be ``*``). None if it does not fit."""
    if not value:
        return None
    unit, _, rest = value.strip().partition(" ")
    span, _, total = rest.partition("/")
    start, sep, end = span.partition("-")
    if unit.lower() != "bytes" or not sep or not start.isdigit() or not end.isdigit():
        return None
    if total != "*" and not total.isdigit():
        return None
    return int(start), int(end), None if total == "*" else int(total)


class RemoteFile:
    """A file behind a URL, described by one HEAD request.

    Further requests go through ``get`` with whatever conditional or
    ``Range`` headers the caller wants to try.
    """

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 30):
        self.url = url
        self.timeout = timeout
        self.requests_made = 0
        self._session = session or _get_session()
        self.metadata = RemoteMetadata.from_headers(self._request("HEAD").headers)

    @property
    def content_length(self) -> Optional[int]:
        return self.metadata.content_length

    @property
    def etag(self) -> Optional[str]:
        return self.metadata.etag

    @property
    def accept_ranges(self) -> bool:
        return self.metadata.accept_ranges

    def _request(self, method: str, headers: Optional[Mapping[str, str]] = None) -> requests.Response:
        self.requests_made += 1
        try:
            response = self._session.request(method, self.url, headers=dict(headers or {}), timeout=self.timeout)
        except requests.RequestException as e:
            raise IOError(f"{method} {self.url} failed: {e}")
        if method == "HEAD" and response.status_code >= 400:
            raise IOError(f"HEAD {self.url} failed with status {response.status_code}")
        return response

    def get(self, headers: Optional[Mapping[str, str]] = None) -> requests.Response:
        """GET with extra request headers; any status is returned as is."""
        return self._request("GET", headers)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # the session is shared
        pass
