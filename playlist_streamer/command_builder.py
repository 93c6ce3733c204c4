"""
FFmpeg command builder.

Constructs the FFmpeg command that pushes one playlist file to the RTMP
destination at its native frame rate.
"""

import logging
from typing import List, Optional

from playlist_streamer.config import PlaylistConfig

logger = logging.getLogger(__name__)

VIDEO_CODEC = "libx264"
VIDEO_PRESET = "medium"
BUFFER_SIZE = "5000k"
AUDIO_CODEC = "aac"
AUDIO_CHANNELS = "2"
OUTPUT_FORMAT = "flv"


class StreamCommandBuilder:
    """
    Builds FFmpeg commands for streaming a single video file over RTMP.

    Every file in the playlist gets the same argument template; only the
    input path changes between invocations.
    """

    def __init__(self, config: PlaylistConfig):
        """
        Initialize command builder.

        Args:
            config: Playlist configuration
        """
        self.config = config

    def build_command(self, input_path: str, destination: Optional[str] = None) -> List[str]:
        """
        Build complete FFmpeg command for streaming one file.

        Args:
            input_path: Path of the video file to stream
            destination: RTMP URL to publish to (defaults to config stream URL)

        Returns:
            List of command arguments for subprocess

        Raises:
            ValueError: If input_path is empty
        """
        if not input_path or not input_path.strip():
            raise ValueError("input_path cannot be empty")

        destination = destination or self.config.stream_url

        cmd = [self.config.ffmpeg_binary]

        # Input (read at native frame rate, essential for live streaming)
        cmd.extend(["-re", "-i", input_path])

        # Video encoding
        cmd.extend(self._build_video_encoding())

        # Audio encoding
        cmd.extend(self._build_audio_encoding())

        # Output options
        cmd.extend(["-f", OUTPUT_FORMAT, destination])

        logger.debug(f"Built FFmpeg command: {' '.join(cmd)}")
        return cmd

    def _build_video_encoding(self) -> List[str]:
        """Build video encoding options."""
        return [
            "-c:v", VIDEO_CODEC,
            "-preset", VIDEO_PRESET,
            "-s", self.config.resolution,
            "-b:v", self.config.video_bitrate,
            "-maxrate", self.config.video_bitrate,
            "-bufsize", BUFFER_SIZE,
            "-r", str(self.config.fps),
        ]

    def _build_audio_encoding(self) -> List[str]:
        """Build audio encoding options."""
        return [
            "-c:a", AUDIO_CODEC,
            "-b:a", self.config.audio_bitrate,
            "-ac", AUDIO_CHANNELS,
        ]

    def get_command_string(self, input_path: str, destination: Optional[str] = None) -> str:
        """
        Get FFmpeg command as a single string (useful for logging).

        Args:
            input_path: Path of the video file to stream
            destination: RTMP URL to publish to

        Returns:
            Space-separated command string
        """
        return " ".join(self.build_command(input_path, destination))
