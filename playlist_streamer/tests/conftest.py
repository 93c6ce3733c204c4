"""
Pytest configuration and fixtures for playlist streamer tests.
"""

import logging
from typing import Callable

import pytest

from playlist_streamer.command_builder import StreamCommandBuilder
from playlist_streamer.config import PlaylistConfig
from playlist_streamer.progress import ProgressParser
from playlist_streamer.supervisor import PlaylistSupervisor

CONFIG_ENV_VARS = [
    "INPUT_FILE",
    "LOOP_PLAYLIST",
    "RTMP_URL",
    "STREAM_KEY",
    "RESOLUTION",
    "VIDEO_BITRATE",
    "AUDIO_BITRATE",
    "FPS",
    "FFMPEG_BINARY",
    "STOP_TIMEOUT",
    "LOG_LEVEL",
    "LOG_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep host environment variables and .env files out of the tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_config() -> Callable[..., PlaylistConfig]:
    """Factory for test configurations."""

    def _make(**overrides) -> PlaylistConfig:
        values = {
            "input_file": "a.mp4,b.mp4",
            "rtmp_url": "rtmp://test-server:1935/live",
            "stream_key": "test-key",
            "loop_playlist": False,
            "stop_timeout": 1.0,
        }
        values.update(overrides)
        return PlaylistConfig(_env_file=None, **values)

    return _make


@pytest.fixture
def test_config(make_config) -> PlaylistConfig:
    """Create a two-file, non-looping test configuration."""
    return make_config()


@pytest.fixture
def command_builder(test_config: PlaylistConfig) -> StreamCommandBuilder:
    """Create a command builder for testing."""
    return StreamCommandBuilder(test_config)


@pytest.fixture
def supervisor(test_config: PlaylistConfig) -> PlaylistSupervisor:
    """Create a playlist supervisor for testing."""
    return PlaylistSupervisor(config=test_config)


@pytest.fixture
def progress_parser() -> ProgressParser:
    """Create a progress parser for testing."""
    return ProgressParser()


@pytest.fixture
def isolated_root_logger():
    """Undo handler and level changes made to the root logger by a test."""
    root = logging.getLogger()
    saved_level = root.level
    saved_handlers = list(root.handlers)

    yield root

    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)


@pytest.fixture
def sample_progress_line() -> str:
    """Sample FFmpeg progress line."""
    return (
        "frame=  200 fps= 30 q=28.0 size=    1024kB time=00:00:06.66 "
        "bitrate=1258.3kbits/s dup=1 drop=2 speed=1.00x"
    )
