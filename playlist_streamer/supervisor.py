"""
Playlist supervisor.

Streams each playlist file through its own FFmpeg process, one at a time,
advancing to the next file whenever the current process exits and looping
back to the start when configured to.
"""

import asyncio
import codecs
import logging
import re
import signal
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

import psutil

from playlist_streamer.command_builder import StreamCommandBuilder
from playlist_streamer.config import PlaylistConfig
from playlist_streamer.progress import ProgressParser

logger = logging.getLogger(__name__)
ffmpeg_logger = logging.getLogger(f"{__name__}.ffmpeg")

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_READ_CHUNK_SIZE = 4096


class SupervisorState(str, Enum):
    """Playlist supervisor states."""

    STREAMING = "streaming"
    STOPPED = "stopped"


@dataclass
class ActiveProcess:
    """The FFmpeg process currently streaming a playlist file."""

    pid: int
    file_path: str
    file_index: int
    started_at: datetime
    process: asyncio.subprocess.Process
    progress: ProgressParser = field(default_factory=ProgressParser)

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class PlaylistSupervisor:
    """
    Runs the playlist: one FFmpeg process per file, strictly sequential.

    The supervisor owns the playlist cursor and the handle of the active
    process. Whatever way a process ends (clean exit, non-zero exit, signal or
    launch failure) the playlist moves on to the next file; only the end of a
    non-looping playlist or an explicit stop request ends the run.
    """

    def __init__(
        self,
        config: Optional[PlaylistConfig] = None,
        command_builder: Optional[StreamCommandBuilder] = None,
    ):
        """
        Initialize playlist supervisor.

        Args:
            config: Playlist configuration (creates default if not provided)
            command_builder: Command builder instance (creates default if not provided)

        Raises:
            ValueError: If the playlist is empty
        """
        if config is None:
            from playlist_streamer.config import get_config

            config = get_config()

        self.config = config
        self.command_builder = command_builder or StreamCommandBuilder(config)

        self.files: List[str] = config.input_files
        if not self.files:
            raise ValueError("Playlist must contain at least one file")

        # Computed once, shared by every FFmpeg invocation in this run
        self.destination_url = config.stream_url

        self.cursor = 0
        self.state = SupervisorState.STOPPED
        self.cycles_completed = 0
        self.files_started = 0

        self._active: Optional[ActiveProcess] = None
        self._stop_requested = False
        self._stop_task: Optional[asyncio.Task] = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    async def start_stream(self) -> None:
        """
        Stream the playlist from the first file until the supervisor stops.

        Returns when a non-looping playlist has been played through or after
        stop() has been requested.
        """
        self._log_summary()

        self.cursor = 0
        self.state = SupervisorState.STREAMING

        while self.state == SupervisorState.STREAMING:
            await self.stream_file(self.files[self.cursor], self.cursor)

            # A failed launch never suspends; let pending stop requests run
            await asyncio.sleep(0)

            if self._stop_requested:
                self.state = SupervisorState.STOPPED
                logger.info("Stream stopped on request")
                break

            self.advance()

    async def stream_file(self, file_path: str, file_index: int) -> Optional[int]:
        """
        Stream one file and wait for its FFmpeg process to exit.

        Args:
            file_path: Path of the file to stream
            file_index: Position of the file in the playlist (for logging)

        Returns:
            FFmpeg exit code (negative if killed by a signal), or None if the
            process could not be launched
        """
        cmd = self.command_builder.build_command(file_path, self.destination_url)

        logger.info(f"Playing video {file_index + 1}/{len(self.files)}: {file_path}")
        logger.debug(f"Command: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Failed to launch FFmpeg for {file_path}: {e}")
            return None

        active = ActiveProcess(
            pid=process.pid,
            file_path=file_path,
            file_index=file_index,
            started_at=datetime.now(),
            process=process,
        )
        self._active = active
        self.files_started += 1

        logger.debug(f"FFmpeg process started (PID: {process.pid})")

        # A stop may have arrived while the process was being spawned
        if self._stop_requested:
            self._send_terminate(active)

        await self._forward_output(active)
        returncode = await process.wait()

        self._report_exit(active, returncode)
        return returncode

    def advance(self) -> SupervisorState:
        """
        Move the cursor to the next file.

        Wraps to the first file when looping is enabled; otherwise the end of
        the playlist stops the supervisor.

        Returns:
            The state after advancing
        """
        next_index = self.cursor + 1

        if next_index >= len(self.files):
            self.cycles_completed += 1

            if not self.config.loop_playlist:
                logger.info("Playlist ended. Stopping stream.")
                self.state = SupervisorState.STOPPED
                return self.state

            logger.info("Playlist ended. Looping from the beginning...")
            next_index = 0

        self.cursor = next_index
        return self.state

    async def stop(self) -> None:
        """
        Stop streaming deliberately.

        Terminates the active FFmpeg process (escalating to SIGKILL after
        stop_timeout) and prevents the playlist from advancing.
        """
        if self._stop_requested:
            return

        self._stop_requested = True
        logger.info("Stop requested")

        active = self._active
        if active is None or active.process.returncode is not None:
            return

        await self._terminate_process(active)

    def request_stop(self) -> None:
        """Schedule stop() on the running event loop (for signal handlers)."""
        if self._stop_task is None:
            self._stop_task = asyncio.get_running_loop().create_task(self.stop())

    async def _terminate_process(self, active: ActiveProcess) -> None:
        """Terminate an FFmpeg process gracefully, then forcefully."""
        process = active.process
        self._send_terminate(active)

        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.stop_timeout)
            logger.debug(f"Process {active.pid} terminated successfully")
        except asyncio.TimeoutError:
            logger.warning(f"Process {active.pid} did not terminate gracefully, force killing")
            try:
                process.kill()
            except ProcessLookupError:
                pass

    def _send_terminate(self, active: ActiveProcess) -> None:
        logger.info(f"Sending SIGTERM to FFmpeg process {active.pid}")
        try:
            active.process.terminate()
        except ProcessLookupError:
            logger.debug(f"Process {active.pid} already exited")

    async def _forward_output(self, active: ActiveProcess) -> None:
        """Forward FFmpeg stderr to the log until the stream closes."""
        stream = active.process.stderr
        if stream is None:
            return

        # FFmpeg ends progress lines with \r, so lines are split by hand
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""

        while True:
            chunk = await stream.read(_READ_CHUNK_SIZE)
            if not chunk:
                break

            pending += decoder.decode(chunk)
            *lines, pending = _LINE_BREAK.split(pending)
            for line in lines:
                self._forward_line(active, line)

        pending += decoder.decode(b"", final=True)
        self._forward_line(active, pending)

    def _forward_line(self, active: ActiveProcess, line: str) -> None:
        line = line.strip()
        if not line:
            return

        active.progress.parse_line(line)
        ffmpeg_logger.info(line)

    def _report_exit(self, active: ActiveProcess, returncode: int) -> None:
        """Log how an FFmpeg process ended."""
        if self._stop_requested:
            logger.info(f"FFmpeg process {active.pid} stopped (exit code {returncode})")
        elif returncode < 0:
            logger.error(
                f"FFmpeg process {active.pid} terminated by signal "
                f"{_signal_name(-returncode)}"
            )
        elif returncode > 0:
            logger.warning(f"FFmpeg process exited with code {returncode}")
        else:
            metrics = active.progress.metrics
            logger.info(
                f"Finished video {active.file_index + 1}/{len(self.files)}: "
                f"{active.file_path} ({metrics.frame_count} frames, {metrics.time})"
            )

    def _log_summary(self) -> None:
        logger.info("Starting live stream with playlist...")
        logger.info(f"Videos: {', '.join(self.files)}")
        logger.info(f"Output: {self.destination_url}")
        logger.info(f"Stream Key: {self.config.stream_key}")
        logger.info(f"Resolution: {self.config.resolution}")
        logger.info(f"Video Bitrate: {self.config.video_bitrate}")
        logger.info(f"Audio Bitrate: {self.config.audio_bitrate}")
        logger.info(f"Frame Rate: {self.config.fps}fps")
        logger.info(f"Loop Playlist: {self.config.loop_playlist}")

    def get_status(self) -> Dict:
        """
        Get current status of the playlist and its FFmpeg process.

        Returns:
            Dictionary with playlist and process status information
        """
        active = self._active
        running = active is not None and active.process.returncode is None

        status = {
            "state": self.state,
            "cursor": self.cursor,
            "current_file": self.files[self.cursor],
            "total_files": len(self.files),
            "loop_playlist": self.config.loop_playlist,
            "cycles_completed": self.cycles_completed,
            "files_started": self.files_started,
            "pid": active.pid if running else None,
            "uptime_seconds": active.uptime_seconds if running else 0,
        }

        if active is not None:
            status["metrics"] = active.progress.get_metrics_summary()

        if running:
            resources = self.get_resource_usage()
            if resources:
                status["resources"] = resources

        return status

    def is_running(self) -> bool:
        """
        Check if an FFmpeg process is currently streaming.

        Returns:
            True if a process is running
        """
        return self._active is not None and self._active.process.returncode is None

    def get_resource_usage(self) -> Optional[Dict]:
        """
        Get CPU and memory usage of the active FFmpeg process.

        Returns:
            Dictionary with cpu_percent and memory_mb, or None if unavailable
        """
        if not self.is_running():
            return None

        try:
            proc = psutil.Process(self._active.pid)
            return {
                "cpu_percent": proc.cpu_percent(interval=None),
                "memory_mb": proc.memory_info().rss / 1024 / 1024,
            }
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return None
