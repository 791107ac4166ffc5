"""Decide how to answer a request for a stored file and assemble the headers.

Everything here is a pure function of the resource descriptor and the
request: no I/O, no logging, no state kept between calls. The caller streams
``Response.window`` out of its own storage.
"""

from __future__ import annotations
import unicodedata
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from werkzeug.http import http_date, parse_date, parse_list_header

from ..config import DEFAULT_CONFIG, ServeConfig
from .mime import cache_control_for
from .model import (
    ByteWindow, FullContent, Header, MalformedRangeFallback, NotModified,
    PartialContent, RangeNotSatisfiable, RangeRequest, ResourceDescriptor,
    Response, ResponseDecision,
)
from .ranges import MalformedRange, resolve_ranges

NOT_SATISFIABLE_BODY = b"Range Not Satisfiable"
_CONDITIONAL_METHODS = ("GET", "HEAD")


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _whole_seconds(value: datetime) -> datetime:
    # HTTP dates carry no sub-second part
    return _utc(value).replace(microsecond=0)


def etag_matches(if_none_match: str, etag: str) -> bool:
    """Exact comparison against an If-None-Match list; ``*`` matches anything."""
    value = if_none_match.strip()
    if value == "*":
        return True
    return any(candidate.strip() == etag for candidate in value.split(","))


def wants_revalidation(cache_control: Optional[str]) -> bool:
    """True when the request carries a ``no-cache`` directive."""
    if not cache_control:
        return False
    directives = (item.partition("=")[0].strip().lower() for item in parse_list_header(cache_control))
    return "no-cache" in directives


def is_fresh(resource: ResourceDescriptor, request: RangeRequest) -> bool:
    """Whether the client's cached copy is still current."""
    if request.method not in _CONDITIONAL_METHODS:
        return False
    if wants_revalidation(request.cache_control):
        return False

    # If-None-Match wins over If-Modified-Since when both are sent
    if request.if_none_match is not None:
        return etag_matches(request.if_none_match, resource.etag)
    if request.if_modified_since is not None:
        return _whole_seconds(resource.last_modified) <= _utc(request.if_modified_since)
    return False


def if_range_matches(resource: ResourceDescriptor, if_range: str) -> bool:
    value = if_range.strip()
    if value.startswith(('"', "W/")):
        # weak tags never pass the strong comparison If-Range requires
        return value == resource.etag
    date = parse_date(value)
    if date is None:
        return False
    return _whole_seconds(resource.last_modified) == _utc(date)


def content_disposition(filename: str) -> str:
    """``inline`` disposition so browsers render instead of downloading."""
    filename = filename.replace("\r", "").replace("\n", "")
    try:
        filename.encode("ascii")
    except UnicodeEncodeError:
        fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
        quoted = quote(filename, safe="!#$&+-.^_`|~")
        return f'inline; filename="{_escape(fallback)}"; filename*=UTF-8\'\'{quoted}'
    return f'inline; filename="{_escape(filename)}"'


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class RangeResponder:
    """Maps (resource, request) to a ResponseDecision and its header set."""

    def __init__(self, config: ServeConfig = DEFAULT_CONFIG):
        self.config = config

    # ------------------------------------------------------------------ #
    def decide(self, resource: ResourceDescriptor, request: RangeRequest) -> ResponseDecision:
        if is_fresh(resource, request):
            return NotModified()

        range_header = request.range.strip() if request.range else ""
        if (not resource.supports_ranges
                or not range_header
                or request.method not in _CONDITIONAL_METHODS):
            return FullContent()

        if request.if_range is not None and not if_range_matches(resource, request.if_range):
            return FullContent()

        try:
            windows = resolve_ranges(range_header, resource.total_size)
        except MalformedRange:
            return MalformedRangeFallback()

        if not windows:
            return RangeNotSatisfiable()
        # no multipart/byteranges: serve the first window after coalescing
        return PartialContent(windows[0])

    # ------------------------------------------------------------------ #
    def respond(self, resource: ResourceDescriptor, request: RangeRequest) -> Response:
        decision = self.decide(resource, request)
        send_body = request.method != "HEAD"
        total = resource.total_size

        if isinstance(decision, NotModified):
            return Response(decision, self._validator_headers(resource) + [
                ("Cache-Control", cache_control_for(resource.content_type, self.config)),
            ])

        if isinstance(decision, RangeNotSatisfiable):
            return Response(decision, [
                ("Content-Range", f"bytes */{total}"),
                ("Content-Type", "text/plain; charset=utf-8"),
                ("Content-Length", str(len(NOT_SATISFIABLE_BODY))),
            ], body=NOT_SATISFIABLE_BODY if send_body else b"")

        headers = self._entity_headers(resource)
        if isinstance(decision, PartialContent):
            window = decision.window
            headers += [
                ("Accept-Ranges", "bytes"),
                ("Content-Range", f"bytes {window.start}-{window.end}/{total}"),
                ("Content-Length", str(window.length)),
            ]
        else:
            window = ByteWindow.whole(total)
            if resource.supports_ranges:
                headers.append(("Accept-Ranges", "bytes"))
            headers.append(("Content-Length", str(total)))

        return Response(decision, headers, window=window if send_body else None)

    # ------------------------------------------------------------------ #
    def _validator_headers(self, resource: ResourceDescriptor) -> List[Header]:
        return [
            ("ETag", resource.etag),
            ("Last-Modified", http_date(_utc(resource.last_modified))),
        ]

    def _entity_headers(self, resource: ResourceDescriptor) -> List[Header]:
        return self._validator_headers(resource) + [
            ("Content-Type", resource.content_type),
            ("Content-Disposition", content_disposition(resource.filename)),
            ("Cache-Control", cache_control_for(resource.content_type, self.config)),
        ]


_DEFAULT_RESPONDER = RangeResponder()


def decide(resource: ResourceDescriptor, request: RangeRequest) -> ResponseDecision:
    """Decide with the default configuration."""
    return _DEFAULT_RESPONDER.decide(resource, request)


def respond(resource: ResourceDescriptor, request: RangeRequest) -> Response:
    """Decide and assemble headers with the default configuration."""
    return _DEFAULT_RESPONDER.respond(resource, request)
