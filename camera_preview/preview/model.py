"""Preview data model: clips, timeline entries, commands and session state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from .timeline import Timeline

MILLISECONDS = 1000


def secs_to_ms(seconds: float) -> int:
    return int(round(seconds * MILLISECONDS))


@dataclass(frozen=True)
class Clip:
    """A playable item stored on the camera."""
    clip_id: str
    duration_secs: float
    start_offset_secs: float = 0.0
    muted: bool = False

    @property
    def duration_ms(self) -> int:
        return secs_to_ms(self.duration_secs)

    @classmethod
    def from_playable(cls, playable: Any) -> "Clip":
        """Copy ``playable`` into a Clip.

        Accepts a Clip, a mapping with the Clip field names, or any object
        exposing them as attributes. Raises TypeError/KeyError/AttributeError
        when the source cannot be read.
        """
        if isinstance(playable, Clip):
            return replace(playable)
        if isinstance(playable, Mapping):
            return cls(
                clip_id=str(playable["clip_id"]),
                duration_secs=float(playable["duration_secs"]),
                start_offset_secs=float(playable.get("start_offset_secs", 0.0)),
                muted=bool(playable.get("muted", False)),
            )
        return cls(
            clip_id=str(playable.clip_id),
            duration_secs=float(playable.duration_secs),
            start_offset_secs=float(getattr(playable, "start_offset_secs", 0.0)),
            muted=bool(getattr(playable, "muted", False)),
        )


@dataclass(frozen=True)
class TimelineEntry:
    """A clip placed on the virtual timeline."""
    index: int
    clip: Clip
    offset_ms: int
    duration_ms: int

    @property
    def offset_secs(self) -> float:
        return self.offset_ms / MILLISECONDS

    @property
    def end_ms(self) -> int:
        return self.offset_ms + self.duration_ms


class CommandKind(Enum):
    START = "start"
    STOP = "stop"


@dataclass(frozen=True)
class PreviewCommand:
    """Start or stop streaming a region of a clip to ``port``."""
    kind: CommandKind
    clip_id: str
    port: int
    start_offset_secs: Optional[float] = None
    length_secs: Optional[float] = None

    @classmethod
    def start(
        cls,
        clip_id: str,
        port: int,
        start_offset_secs: float,
        length_secs: float,
    ) -> "PreviewCommand":
        return cls(CommandKind.START, clip_id, port, start_offset_secs, length_secs)

    @classmethod
    def stop(cls, clip_id: str, port: int) -> "PreviewCommand":
        return cls(CommandKind.STOP, clip_id, port)

    @property
    def is_start(self) -> bool:
        return self.kind is CommandKind.START

    def with_port(self, port: int) -> "PreviewCommand":
        return replace(self, port=port)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "command": self.kind.value,
            "video_id": self.clip_id,
            "preview_video_port": self.port,
        }
        if self.is_start:
            payload["start_position_secs"] = self.start_offset_secs
            payload["length_secs"] = self.length_secs
        return payload


class PreviewState(Enum):
    UNPREPARED = "unprepared"
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class PreviewSession:
    """Mutable state of one prepared preview."""
    timeline: "Timeline"
    playable_files: Sequence[Any]
    current_clip: Optional[Clip] = None
    playing_index: int = -1
    buffering_index: int = 0
    current_seek_ms: int = 0
    just_restarted: bool = False
    preview_started_pending: bool = False
    bounded: bool = False
    skipped: list[int] = field(default_factory=list)


__all__ = [
    "MILLISECONDS",
    "secs_to_ms",
    "Clip",
    "TimelineEntry",
    "CommandKind",
    "PreviewCommand",
    "PreviewState",
    "PreviewSession",
]
