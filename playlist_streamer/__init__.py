"""
Playlist Streamer

Streams a playlist of local video files to an RTMP endpoint, one FFmpeg
process per file, looping the playlist until stopped.

Version: 1.0.0
"""

__version__ = "1.0.0"

from playlist_streamer.command_builder import StreamCommandBuilder
from playlist_streamer.config import PlaylistConfig, get_config
from playlist_streamer.progress import ProgressParser, StreamMetrics
from playlist_streamer.supervisor import PlaylistSupervisor, SupervisorState

__all__ = [
    "StreamCommandBuilder",
    "PlaylistConfig",
    "get_config",
    "ProgressParser",
    "StreamMetrics",
    "PlaylistSupervisor",
    "SupervisorState",
]
