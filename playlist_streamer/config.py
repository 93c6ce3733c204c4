"""
Playlist streamer configuration.

Settings are read once at startup from environment variables (and an optional
.env file in the working directory) and are immutable afterwards.
"""

import re
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INPUT_FILE = "./input.mp4"
DEFAULT_FPS = 30

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_input_files(value: str) -> List[str]:
    """
    Split a comma-separated playlist into trimmed file paths.

    Blank entries are dropped, so "a.mp4,,b.mp4" yields two files.

    Args:
        value: Raw INPUT_FILE value

    Returns:
        Ordered list of file paths
    """
    return [entry.strip() for entry in value.split(",") if entry.strip()]


class PlaylistConfig(BaseSettings):
    """Playlist and encoding settings from environment variables."""

    # Playlist
    input_file: str = Field(
        default=DEFAULT_INPUT_FILE,
        description="Comma-separated list of video files to stream in order",
    )

    loop_playlist: bool = Field(
        default=True,
        description="Restart from the first file after the last one finishes",
    )

    # RTMP output
    rtmp_url: str = Field(
        default="rtmp://localhost:1935/live",
        description="RTMP server base URL",
    )

    stream_key: str = Field(
        default="stream",
        description="Stream key appended to the RTMP base URL",
    )

    # Encoding
    resolution: str = Field(
        default="1920x1080",
        description="Output resolution as WIDTHxHEIGHT",
        pattern=r"^\d+x\d+$",
    )

    video_bitrate: str = Field(
        default="5000k",
        description="Video bitrate (also used as maxrate)",
        pattern=r"^\d+k$",
    )

    audio_bitrate: str = Field(
        default="128k",
        description="Audio bitrate",
        pattern=r"^\d+k$",
    )

    fps: int = Field(
        default=DEFAULT_FPS,
        description="Output frame rate",
        ge=1,
    )

    # FFmpeg binary
    ffmpeg_binary: str = Field(
        default="ffmpeg",
        description="Path to FFmpeg binary",
    )

    # Process management
    stop_timeout: float = Field(
        default=10.0,
        description="Seconds to wait after SIGTERM before killing FFmpeg on stop",
        ge=1.0,
        le=300.0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Python logging level",
    )

    log_path: Optional[str] = Field(
        default=None,
        description="Directory for the rotating JSON log file (console only if unset)",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("input_file")
    @classmethod
    def _validate_input_file(cls, value: str) -> str:
        if not value.strip():
            return DEFAULT_INPUT_FILE
        if not parse_input_files(value):
            raise ValueError("INPUT_FILE does not contain any file paths")
        return value

    @field_validator("fps", mode="before")
    @classmethod
    def _parse_fps(cls, value: Any) -> Any:
        # Leading integer wins ("60fps" -> 60); anything unusable falls back to 30
        if value is None or isinstance(value, bool):
            return DEFAULT_FPS
        if isinstance(value, int):
            return value if value > 0 else DEFAULT_FPS
        match = _LEADING_INT.match(str(value))
        if not match:
            return DEFAULT_FPS
        fps = int(match.group(1))
        return fps if fps > 0 else DEFAULT_FPS

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @property
    def input_files(self) -> List[str]:
        """Ordered playlist of input file paths."""
        return parse_input_files(self.input_file)

    @property
    def stream_url(self) -> str:
        """Full RTMP destination: base URL with the stream key appended."""
        return f"{self.rtmp_url}/{self.stream_key}"


def get_config(**overrides: Any) -> PlaylistConfig:
    """
    Get playlist configuration from environment variables.

    Args:
        **overrides: Values that take precedence over the environment

    Returns:
        PlaylistConfig: Configuration instance

    Raises:
        pydantic.ValidationError: If a setting is invalid
    """
    return PlaylistConfig(**overrides)
