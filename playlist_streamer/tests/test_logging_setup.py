"""Unit tests for playlist_streamer.logging_setup."""

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from playlist_streamer.logging_setup import (
    LOG_FILE_NAME,
    LOG_FORMAT,
    JsonFormatter,
    configure_logging,
)


class TestJsonFormatter:
    """Tests for JsonFormatter class."""

    def test_format_basic_record(self):
        record = logging.LogRecord(
            name="playlist_streamer.supervisor",
            level=logging.INFO,
            pathname="supervisor.py",
            lineno=1,
            msg="Playing video %d/%d: %s",
            args=(1, 2, "a.mp4"),
            exc_info=None,
        )

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "playlist_streamer.supervisor"
        assert data["message"] == "Playing video 1/2: a.mp4"
        assert "timestamp" in data

    def test_format_includes_extra_fields(self):
        record = logging.LogRecord(
            name="test", level=logging.WARNING, pathname="", lineno=0,
            msg="exit", args=None, exc_info=None,
        )
        record.file_index = 3
        record.pid = 1234

        data = json.loads(JsonFormatter().format(record))

        assert data["file_index"] == 3
        assert data["pid"] == 1234
        assert "lineno" not in data

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=None, exc_info=sys.exc_info(),
            )

        data = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_console_only(self, isolated_root_logger):
        root = configure_logging("DEBUG")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stdout
        assert handler.formatter._fmt == LOG_FORMAT

    def test_replaces_existing_handlers(self, isolated_root_logger):
        configure_logging("INFO")
        root = configure_logging("WARNING")

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_json_log_file(self, isolated_root_logger, tmp_path):
        log_dir = tmp_path / "logs"

        root = configure_logging("INFO", str(log_dir))
        logging.getLogger("playlist_streamer.test").info("hello")

        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        file_handlers[0].flush()

        lines = (log_dir / LOG_FILE_NAME).read_text().splitlines()
        assert json.loads(lines[-1])["message"] == "hello"

    def test_unwritable_log_path_falls_back_to_console(self, isolated_root_logger, tmp_path):
        with patch("os.makedirs", side_effect=PermissionError("denied")):
            root = configure_logging("INFO", str(tmp_path / "logs"))

        assert len(root.handlers) == 1
        assert not os.path.exists(tmp_path / "logs")
