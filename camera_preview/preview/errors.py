"""Preview error taxonomy and protocol diagnostics."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .model import PreviewCommand


class PreviewError(Exception):
    """Base class for preview errors."""


class NotInitializedError(PreviewError):
    """A playback operation was invoked before ``prepare`` succeeded."""

    def __init__(self, message: str = "Preview not initialized") -> None:
        super().__init__(message)


class AlreadyPreparedError(PreviewError):
    """``prepare`` was called again without a ``release`` in between."""

    def __init__(self, message: str = "Preview already prepared, call release() first") -> None:
        super().__init__(message)


class InvalidInputError(PreviewError, ValueError):
    """Empty or malformed clip list, or a non-positive duration."""


class OutOfRangeError(PreviewError, IndexError):
    """Seek position outside ``[0, total duration]``."""

    def __init__(self, position_ms: int, total_ms: int) -> None:
        super().__init__(f"Position {position_ms}ms outside timeline [0, {total_ms}]ms")
        self.position_ms = position_ms
        self.total_ms = total_ms


class RemoteNackError(PreviewError):
    """The camera kept rejecting commands. Reported to the listener, never raised."""

    def __init__(self, command: Optional["PreviewCommand"], failures: int) -> None:
        kind = command.kind.value if command is not None else "unknown"
        super().__init__(f"Camera rejected {failures} command(s) in a row (last: {kind})")
        self.command = command
        self.failures = failures


class CommandTimeoutError(PreviewError):
    """An in-flight command was never acknowledged. Reported to the listener."""

    def __init__(self, command: "PreviewCommand", elapsed_secs: float) -> None:
        super().__init__(
            f"No acknowledgment for {command.kind.value} command after {elapsed_secs:.1f}s"
        )
        self.command = command
        self.elapsed_secs = elapsed_secs


class DiagnosticKind(Enum):
    COMMAND_DROPPED = "command_dropped"
    NULL_COMMAND = "null_command"
    MISSING_CURRENT_CLIP = "missing_current_clip"
    CLIP_SKIPPED = "clip_skipped"
    REMOTE_NACK = "remote_nack"
    COMMAND_TIMEOUT = "command_timeout"
    STRAY_ACK = "stray_ack"


@dataclass(frozen=True)
class Diagnostic:
    """A protocol anomaly that was absorbed instead of raised."""
    kind: DiagnosticKind
    message: str
    command: Optional["PreviewCommand"] = None
    timestamp: float = field(default_factory=time.time)


__all__ = [
    "PreviewError",
    "NotInitializedError",
    "AlreadyPreparedError",
    "InvalidInputError",
    "OutOfRangeError",
    "RemoteNackError",
    "CommandTimeoutError",
    "DiagnosticKind",
    "Diagnostic",
]
