"""Command line entry point: preview a playlist from a remote camera."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
from pathlib import Path
from typing import Optional, Sequence

import cv2

from camera_preview.config import PreviewConfig
from camera_preview.core.logging_config import configure_logging
from camera_preview.core.logging_utils import get_module_logger
from camera_preview.preview import Clip, PreviewError, PreviewListener
from camera_preview.runtime import PreviewRuntime

logger = get_module_logger("PreviewCLI")

LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

WINDOW_NAME = "Camera preview"
_DISPLAY_INTERVAL = 1 / 30


def parse_clip(value: str) -> Clip:
    """Parse ``CLIP_ID:DURATION[:START[:muted]]`` into a clip."""
    parts = value.split(":")
    if len(parts) < 2 or len(parts) > 4 or not parts[0]:
        raise argparse.ArgumentTypeError(
            f"Clip must look like CLIP_ID:DURATION[:START[:muted]], got '{value}'"
        )
    try:
        duration = float(parts[1])
        start = float(parts[2]) if len(parts) > 2 and parts[2] else 0.0
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid number in clip '{value}'") from exc
    if duration <= 0:
        raise argparse.ArgumentTypeError(f"Clip duration must be positive in '{value}'")
    muted = False
    if len(parts) == 4:
        if parts[3] != "muted":
            raise argparse.ArgumentTypeError(f"Unknown clip flag '{parts[3]}' in '{value}'")
        muted = True
    return Clip(parts[0], duration, start, muted)


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Value must be an integer") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("Value must not be negative")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="camera_preview",
        description="Preview a playlist of clips streamed from a remote camera",
    )
    parser.add_argument(
        "clips",
        nargs="+",
        type=parse_clip,
        metavar="CLIP_ID:DURATION[:START[:muted]]",
        help="Clips in playback order (seconds)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (defaults to the bundled config.txt)",
    )
    parser.add_argument("--camera-host", type=str, default=None, help="Camera address")
    parser.add_argument("--camera-port", type=int, default=None, help="Camera HTTP port")
    parser.add_argument(
        "--stream-port",
        type=int,
        default=None,
        help="Local port the camera streams into (0 picks a free port)",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=None,
        help="Logging verbosity",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs",
    )
    parser.add_argument(
        "--seek-ms",
        type=_non_negative_int,
        default=0,
        help="Start the preview at this timeline position",
    )
    parser.add_argument(
        "--no-window",
        dest="window",
        action="store_false",
        default=True,
        help="Do not open a display window",
    )
    return parser


class ConsoleListener(PreviewListener):
    """Logs preview events and signals when the preview is over."""

    def __init__(self, loop: asyncio.AbstractEventLoop, done: asyncio.Event) -> None:
        self._loop = loop
        self._done = done
        self.total_ms = 0
        self.position_ms = 0

    def on_total_length_set(self, total_ms: int) -> None:
        self.total_ms = total_ms
        logger.info("Timeline length: %.3fs", total_ms / 1000)

    def on_preview_started(self, at_ms: int) -> None:
        logger.info("Preview started at %.3fs", at_ms / 1000)

    def on_preview_time_progress(self, position_ms: int) -> None:
        self.position_ms = position_ms

    def on_end_received(self) -> None:
        logger.info("End of preview")
        self._loop.call_soon_threadsafe(self._done.set)

    def on_preview_error(self, error: PreviewError) -> None:
        logger.error("Preview error: %s", error)
        self._loop.call_soon_threadsafe(self._done.set)


async def _display_loop(runtime: PreviewRuntime, done: asyncio.Event) -> None:
    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    try:
        while not done.is_set():
            frame = runtime.surface.get_display_frame()
            if frame is not None:
                cv2.imshow(WINDOW_NAME, cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
            if (cv2.waitKey(1) & 0xFF) in (ord("q"), 27):
                logger.info("Display closed by user")
                done.set()
                break
            await asyncio.sleep(_DISPLAY_INTERVAL)
    finally:
        cv2.destroyWindow(WINDOW_NAME)


async def run(args: argparse.Namespace, config: Optional[PreviewConfig] = None) -> int:
    config = config or PreviewConfig.load(args.config, args)
    loop = asyncio.get_running_loop()
    done = asyncio.Event()
    listener = ConsoleListener(loop, done)

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, done.set)

    async with PreviewRuntime(config, listener) as runtime:
        orchestrator = runtime.orchestrator
        try:
            orchestrator.prepare(args.clips)
            if args.seek_ms:
                orchestrator.seek(args.seek_ms)
            else:
                orchestrator.start()
        except PreviewError as e:
            logger.error("Could not start preview: %s", e)
            return 1

        if args.window:
            await _display_loop(runtime, done)
        else:
            await done.wait()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = PreviewConfig.load(args.config, args)
    configure_logging(config.log_level, force=True, log_file=config.log_file or None)

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        return 130


__all__ = ["main", "run", "build_parser", "parse_clip", "ConsoleListener"]
