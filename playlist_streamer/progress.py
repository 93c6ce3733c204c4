"""
FFmpeg progress parser.

Extracts encoding statistics from the progress lines FFmpeg writes to
stderr. Used for status reporting only.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class StreamMetrics:
    """Metrics extracted from FFmpeg output."""

    frame_count: int = 0
    fps: float = 0.0
    bitrate: str = "0kbits/s"
    speed: float = 0.0
    time: str = "00:00:00.00"
    dup_frames: int = 0
    drop_frames: int = 0
    last_update: Optional[datetime] = None


class ProgressParser:
    """Parses FFmpeg progress lines into StreamMetrics."""

    METRICS_PATTERN = re.compile(
        r"frame=\s*(\d+)\s+"
        r"fps=\s*([\d.]+)\s+"
        r".*?size=.*?"
        r"time=\s*([\d:.]+)\s+"
        r"bitrate=\s*([\d.]+\w+/s)\s+"
        r"(?:dup=\s*(\d+)\s+)?"
        r"(?:drop=\s*(\d+)\s+)?"
        r"speed=\s*([\d.]+)x"
    )

    def __init__(self):
        self.metrics = StreamMetrics()

    def parse_line(self, line: str) -> bool:
        """
        Update metrics from a single line of FFmpeg output.

        Args:
            line: Line of FFmpeg stderr output

        Returns:
            True if the line was a progress line
        """
        match = self.METRICS_PATTERN.search(line)
        if not match:
            return False

        try:
            self.metrics.frame_count = int(match.group(1))
            self.metrics.fps = float(match.group(2))
            self.metrics.time = match.group(3)
            self.metrics.bitrate = match.group(4)

            # Optional dup/drop frames
            if match.group(5):
                self.metrics.dup_frames = int(match.group(5))
            if match.group(6):
                self.metrics.drop_frames = int(match.group(6))

            self.metrics.speed = float(match.group(7))
            self.metrics.last_update = datetime.now()
        except ValueError as e:
            logger.debug(f"Failed to parse metrics from line: {e}")
            return False

        return True

    def get_metrics_summary(self) -> Dict:
        """
        Get summary of current metrics.

        Returns:
            Dictionary with metric values
        """
        return {
            "frame_count": self.metrics.frame_count,
            "fps": self.metrics.fps,
            "bitrate": self.metrics.bitrate,
            "speed": self.metrics.speed,
            "time": self.metrics.time,
            "dup_frames": self.metrics.dup_frames,
            "drop_frames": self.metrics.drop_frames,
            "last_update": (
                self.metrics.last_update.isoformat() if self.metrics.last_update else None
            ),
        }
