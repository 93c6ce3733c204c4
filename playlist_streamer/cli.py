"""
Command-line entry point for the playlist streamer.

Reads configuration from the environment, then streams the playlist until it
ends (non-looping) or the process receives SIGINT/SIGTERM.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError

from playlist_streamer.command_builder import StreamCommandBuilder
from playlist_streamer.config import PlaylistConfig, get_config
from playlist_streamer.logging_setup import configure_logging
from playlist_streamer.supervisor import PlaylistSupervisor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INTERRUPTED = 130

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playlist-streamer",
        description="Stream a playlist of video files to an RTMP server with FFmpeg",
    )
    parser.add_argument(
        "--no-loop",
        action="store_true",
        help="Stop after the last file instead of looping (overrides LOOP_PLAYLIST)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (overrides LOG_LEVEL)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--print-command",
        action="store_true",
        help="Print the FFmpeg command for each file and exit",
    )
    return parser


async def run_supervisor(config: PlaylistConfig) -> int:
    """
    Run the playlist until it ends or a stop signal arrives.

    Args:
        config: Playlist configuration

    Returns:
        Process exit code
    """
    supervisor = PlaylistSupervisor(config)

    loop = asyncio.get_running_loop()
    for sig in STOP_SIGNALS:
        loop.add_signal_handler(sig, supervisor.request_stop)

    try:
        await supervisor.start_stream()
    finally:
        for sig in STOP_SIGNALS:
            loop.remove_signal_handler(sig)

    return EXIT_INTERRUPTED if supervisor.stop_requested else EXIT_OK


def print_commands(config: PlaylistConfig) -> None:
    builder = StreamCommandBuilder(config)
    for input_path in config.input_files:
        print(builder.get_command_string(input_path))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.no_loop:
        overrides["loop_playlist"] = False
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    elif args.log_level:
        overrides["log_level"] = args.log_level

    try:
        config = get_config(**overrides)
    except ValidationError as e:
        configure_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    configure_logging(config.log_level, config.log_path)

    if args.print_command:
        print_commands(config)
        return EXIT_OK

    return asyncio.run(run_supervisor(config))


if __name__ == "__main__":
    sys.exit(main())
