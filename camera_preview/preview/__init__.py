"""Preview orchestration: timeline, command slot and the orchestrator state machine."""

from .commands import CommandSlot, InFlightCommand, SlotDecision
from .errors import (
    AlreadyPreparedError,
    CommandTimeoutError,
    Diagnostic,
    DiagnosticKind,
    InvalidInputError,
    NotInitializedError,
    OutOfRangeError,
    PreviewError,
    RemoteNackError,
)
from .interfaces import FillLevel, PreviewListener
from .model import Clip, CommandKind, PreviewCommand, PreviewState, TimelineEntry
from .orchestrator import PreviewOrchestrator
from .timeline import Timeline

__all__ = [
    'CommandSlot',
    'InFlightCommand',
    'SlotDecision',
    'AlreadyPreparedError',
    'CommandTimeoutError',
    'Diagnostic',
    'DiagnosticKind',
    'InvalidInputError',
    'NotInitializedError',
    'OutOfRangeError',
    'PreviewError',
    'RemoteNackError',
    'FillLevel',
    'PreviewListener',
    'Clip',
    'CommandKind',
    'PreviewCommand',
    'PreviewState',
    'TimelineEntry',
    'PreviewOrchestrator',
    'Timeline',
]
