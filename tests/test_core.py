import os
from datetime import datetime, timezone

import pytest
from werkzeug.datastructures import Headers

from rangeserve.config import DEFAULT_CONFIG, ServeConfig
from rangeserve.core.mime import (
    cache_control_for, describe_file, etag_for_stat, guess_content_type, supports_ranges,
)
from rangeserve.core.model import (
    ByteWindow, NotModified, PartialContent, RangeNotSatisfiable, RangeRequest,
    ResourceDescriptor, Response,
)
from rangeserve.core.util import response_asdict


class TestByteWindow:
    """Test the ByteWindow invariant."""

    def test_length(self):
        assert ByteWindow(0, 0).length == 1
        assert ByteWindow(200, 299).length == 100

    def test_invalid(self):
        with pytest.raises(ValueError):
            ByteWindow(-1, 5)
        with pytest.raises(ValueError):
            ByteWindow(10, 5)

    def test_whole(self):
        assert ByteWindow.whole(1000) == ByteWindow(0, 999)
        assert ByteWindow.whole(0) is None

    def test_frozen(self):
        window = ByteWindow(0, 9)
        with pytest.raises(AttributeError):
            window.start = 5


class TestRangeRequest:
    """Test building a RangeRequest from headers."""

    def test_from_headers(self):
        headers = Headers({
            "range": "bytes=0-1",
            "If-None-Match": '"abc"',
            "If-Modified-Since": "Tue, 02 Jan 2024 03:04:05 GMT",
            "If-Range": '"abc"',
            "Cache-Control": "no-cache",
        })
        request = RangeRequest.from_headers(headers, method="head")

        assert request.method == "HEAD"
        assert request.range == "bytes=0-1"
        assert request.if_none_match == '"abc"'
        assert request.if_modified_since == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert request.if_range == '"abc"'
        assert request.cache_control == "no-cache"

    def test_unparseable_date(self):
        request = RangeRequest.from_headers(Headers({"If-Modified-Since": "yesterday"}))
        assert request.if_modified_since is None

    def test_defaults(self):
        request = RangeRequest.from_headers(Headers())
        assert request == RangeRequest()


class TestDecisions:
    """Each decision variant carries its status."""

    def test_statuses(self):
        assert NotModified().status == 304
        assert PartialContent(ByteWindow(0, 0)).status == 206
        assert RangeNotSatisfiable.status == 416

    def test_response_header_lookup(self):
        res = Response(NotModified(), [("ETag", '"x"')])
        assert res.status == 304
        assert res.header("etag") == '"x"'
        assert res.header("Content-Length") is None


class TestMime:
    """Content typing and range capability."""

    @pytest.mark.parametrize("name, expected", [
        ("movie.mp4", "video/mp4"),
        ("MOVIE.MKV", "video/x-matroska"),
        ("clip.m4v", "video/mp4"),
        ("song.flac", "audio/flac"),
        ("track.ogg", "audio/ogg"),
        ("photo.png", "image/png"),
        ("doc.pdf", "application/pdf"),
        ("blob.unknownext", "application/octet-stream"),
        ("noext", "application/octet-stream"),
    ])
    def test_guess_content_type(self, name, expected):
        assert guess_content_type(name) == expected

    def test_supports_ranges(self):
        assert supports_ranges("video/mp4")
        assert supports_ranges("audio/mpeg")
        assert supports_ranges("image/jpeg")
        assert supports_ranges("application/pdf")
        assert not supports_ranges("text/plain")
        assert not supports_ranges("application/zip")

    def test_cache_control_for(self):
        assert cache_control_for("audio/wav", DEFAULT_CONFIG) == "public, max-age=2592000, immutable"
        assert cache_control_for("image/gif", DEFAULT_CONFIG) == "public, max-age=604800, immutable"
        assert cache_control_for("text/html", DEFAULT_CONFIG) == "public, max-age=86400, immutable"

    def test_etag_for_stat(self):
        etag = etag_for_stat(1000, 1_700_000_000_123_456_789)
        assert etag == f'"3e8-{1_700_000_000_123:x}"'
        assert etag.startswith('"') and etag.endswith('"')

    def test_describe_file(self, tmp_path):
        path = tmp_path / "stored-abc123"
        path.write_bytes(b"x" * 1000)
        mtime_ns = 1_700_000_000_000_000_000
        os.utime(path, ns=(mtime_ns, mtime_ns))

        descriptor = describe_file(path, filename="Holiday Video.mp4")

        assert descriptor == ResourceDescriptor(
            total_size=1000,
            content_type="video/mp4",
            last_modified=datetime.fromtimestamp(1_700_000_000, tz=timezone.utc),
            etag=etag_for_stat(1000, mtime_ns),
            supports_ranges=True,
            filename="Holiday Video.mp4",
        )

    def test_describe_file_defaults_to_disk_name(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        descriptor = describe_file(path)
        assert descriptor.filename == "notes.txt"
        assert descriptor.content_type == "text/plain"
        assert descriptor.supports_ranges is False

    def test_etag_changes_with_content(self, tmp_path):
        path = tmp_path / "a.mp3"
        path.write_bytes(b"one")
        os.utime(path, ns=(1_000_000_000_000, 1_000_000_000_000))
        before = describe_file(path).etag

        path.write_bytes(b"three")
        os.utime(path, ns=(2_000_000_000_000, 2_000_000_000_000))
        assert describe_file(path).etag != before


class TestServeConfig:
    """Test the injected configuration snapshot."""

    def test_defaults(self):
        assert DEFAULT_CONFIG.chunk_size == 64 * 1024
        assert DEFAULT_CONFIG.media_max_age == 2592000
        assert DEFAULT_CONFIG.image_max_age == 604800
        assert DEFAULT_CONFIG.default_max_age == 86400

    def test_with_overrides(self):
        config = DEFAULT_CONFIG.with_overrides(chunk_size=1024, image_max_age=None)
        assert config.chunk_size == 1024
        assert config.image_max_age == DEFAULT_CONFIG.image_max_age
        assert DEFAULT_CONFIG.chunk_size == 64 * 1024

    def test_validation(self):
        with pytest.raises(ValueError):
            ServeConfig(chunk_size=0)
        with pytest.raises(ValueError):
            ServeConfig(default_max_age=-1)


class TestResponseAsDict:
    """Test the response_asdict utility function."""

    def test_partial(self):
        res = Response(PartialContent(ByteWindow(0, 9)),
                       [("Content-Range", "bytes 0-9/100")], window=ByteWindow(0, 9))

        assert response_asdict(res) == {
            "decision": "PartialContent",
            "status": 206,
            "headers": {"Content-Range": "bytes 0-9/100"},
            "window": {"start": 0, "end": 9, "length": 10},
        }

    def test_field_filtering(self):
        res = Response(NotModified(), [("ETag", '"x"')])
        assert response_asdict(res, fields=["status", "window"]) == {"status": 304, "window": None}
