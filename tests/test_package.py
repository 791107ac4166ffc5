"""Tests for the top-level API and logging setup."""

import logging
import sys

import pytest
from loguru import logger

import rangeserve
from rangeserve import RangeRequest, serve_window
from rangeserve.io import WindowReader, WindowStream
from rangeserve.log import InterceptHandler, setup_logging


class TestServeWindow:
    """Describe, decide and open a stream in one call."""

    def test_partial(self, tmp_path):
        path = tmp_path / "stored-1"
        path.write_bytes(b"abcdefghij")

        response, stream = serve_window(path, RangeRequest(range="bytes=2-4"), filename="song.mp3")
        with stream:
            assert response.status == 206
            assert response.header("Content-Disposition") == 'inline; filename="song.mp3"'
            assert b"".join(stream) == b"cde"
        assert isinstance(stream, WindowReader)
        assert isinstance(stream, WindowStream)

    def test_not_modified_streams_nothing(self, tmp_path):
        path = tmp_path / "a.mp4"
        path.write_bytes(b"abc")
        first, _ = serve_window(path, RangeRequest())

        response, stream = serve_window(path, RangeRequest(if_none_match=first.header("ETag")))
        assert response.status == 304
        assert list(stream) == []

    def test_exports(self):
        for name in rangeserve.__all__:
            assert hasattr(rangeserve, name)


class TestLogging:
    """setup_logging configures loguru and routes stdlib logging into it."""

    @pytest.fixture
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logger.remove()
        logger.add(sys.stderr)
        logger.disable("rangeserve")

    def test_setup_logging(self, restore_logging):
        setup_logging("debug")
        records = []
        logger.add(lambda message: records.append(message.record), level="DEBUG")

        logging.getLogger("werkzeug").info("GET /clip.mp4 206")
        logger.debug("direct message")

        messages = [r["message"] for r in records]
        assert "GET /clip.mp4 206" in messages
        assert "direct message" in messages
        assert any(isinstance(h, InterceptHandler) for h in logging.getLogger().handlers)

    def test_library_is_quiet_by_default(self, tmp_path):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        try:
            path = tmp_path / "a.mp4"
            path.write_bytes(b"abc")
            reader = WindowReader(path, rangeserve.ByteWindow(0, 9))
            with pytest.raises(rangeserve.StreamAbortedError):
                list(reader)
        finally:
            logger.remove(sink_id)
        assert records == []
