"""Contracts between the preview orchestrator and its collaborators."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from .errors import PreviewError
from .model import PreviewCommand


class FillLevel(Enum):
    """How much stream data is queued for the player."""
    EMPTY = "empty"
    LOW = "low"
    READY = "ready"


FillLevelListener = Callable[[FillLevel], None]
EndOfStreamHandler = Callable[[], None]


@runtime_checkable
class CommandChannel(Protocol):
    """Delivers one command to the camera; the ack arrives asynchronously."""

    def send(self, command: PreviewCommand) -> None:
        ...


@runtime_checkable
class StreamServer(Protocol):
    """Listening endpoint the camera streams into."""

    @property
    def port(self) -> int:
        ...

    def start(self) -> int:
        ...

    def stop(self) -> None:
        ...

    def is_running(self) -> bool:
        ...

    def set_end_of_stream_handler(self, handler: Optional[EndOfStreamHandler]) -> None:
        ...


@runtime_checkable
class StreamBufferLike(Protocol):
    def set_fill_level_listener(self, listener: Optional[FillLevelListener]) -> None:
        ...


class PlayerCallback(Protocol):
    def on_frame(self, data: Any, pts_ms: int, is_first_frame: bool) -> None:
        ...

    def on_playback_finished(self) -> None:
        ...


@runtime_checkable
class Player(Protocol):
    """Consumes the stream buffer and reports decoded frames."""

    def play(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def set_volume_enabled(self, enabled: bool) -> None:
        ...

    def set_callback(self, callback: Optional[PlayerCallback]) -> None:
        ...


@runtime_checkable
class VideoSurface(Protocol):
    """Where decoded frames end up."""

    def draw_frame(self, data: Any, pts_ms: int, is_first_frame: bool) -> None:
        ...

    def stop_drawing(self) -> None:
        ...

    def stop(self) -> None:
        ...


class PreviewListener:
    """Receives preview events. Override the methods you need."""

    def on_total_length_set(self, total_ms: int) -> None:
        pass

    def on_preview_started(self, at_ms: int) -> None:
        pass

    def on_preview_time_progress(self, position_ms: int) -> None:
        pass

    def on_end_received(self) -> None:
        pass

    def on_preview_error(self, error: PreviewError) -> None:
        pass


__all__ = [
    "FillLevel",
    "FillLevelListener",
    "EndOfStreamHandler",
    "CommandChannel",
    "StreamServer",
    "StreamBufferLike",
    "PlayerCallback",
    "Player",
    "VideoSurface",
    "PreviewListener",
]
