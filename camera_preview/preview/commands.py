"""
Command slot - keeps at most one preview command in flight to the camera.

The camera handles one start/stop request at a time. While a command is
awaiting its acknowledgment, further requests are collapsed:

1. Nothing in flight: the command is sent and becomes the in-flight command.
2. Start while busy: it replaces the pending command (last start wins).
3. Stop while busy: dropped.
4. Acknowledgment: in-flight is cleared; the pending command, if any, is
   handed back to the caller for sending.
5. ``None``: ignored.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from camera_preview.core.logging_utils import get_module_logger

from .model import PreviewCommand

logger = get_module_logger("CommandSlot")


class SlotDecision(Enum):
    """Outcome of submitting a command."""
    SEND = "send"
    QUEUED = "queued"
    DROPPED_STOP = "dropped_stop"
    DROPPED_NULL = "dropped_null"


@dataclass
class InFlightCommand:
    """A command sent to the camera whose acknowledgment is outstanding."""
    command: PreviewCommand
    sent_at: float
    timeout: float

    def elapsed(self, now: float) -> float:
        return now - self.sent_at

    def is_expired(self, now: float) -> bool:
        return self.elapsed(now) > self.timeout


class CommandSlot:
    """
    In-flight and pending command bookkeeping.

    The slot only decides; the owner performs the actual send. It holds no
    lock of its own and relies on the owner's mutual exclusion.
    """

    def __init__(self, timeout: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self._timeout = timeout
        self._clock = clock
        self._in_flight: Optional[InFlightCommand] = None
        self._pending: Optional[PreviewCommand] = None

    @property
    def in_flight(self) -> Optional[InFlightCommand]:
        return self._in_flight

    @property
    def pending(self) -> Optional[PreviewCommand]:
        return self._pending

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def submit(self, command: Optional[PreviewCommand]) -> SlotDecision:
        """Apply the collapsing rules to ``command``.

        On ``SEND`` the command is already recorded as in flight.
        """
        if command is None:
            logger.error("Null command submitted")
            return SlotDecision.DROPPED_NULL

        if self._in_flight is not None:
            if command.is_start:
                if self._pending is not None:
                    logger.debug("Replacing pending start for %s", self._pending.clip_id)
                self._pending = command
                logger.info("Adding next preview start to schedule (%s)", command.clip_id)
                return SlotDecision.QUEUED
            logger.info(
                "Already executing a %s command, dropping %s",
                self._in_flight.command.kind.value, command.kind.value,
            )
            return SlotDecision.DROPPED_STOP

        self._in_flight = InFlightCommand(command, self._clock(), self._timeout)
        return SlotDecision.SEND

    def schedule(self, command: PreviewCommand) -> None:
        """Store ``command`` as the pending one, regardless of in-flight state."""
        logger.info("Scheduling %s for %s", command.kind.value, command.clip_id)
        self._pending = command

    def complete(self) -> Optional[InFlightCommand]:
        """Clear and return the in-flight command."""
        finished, self._in_flight = self._in_flight, None
        return finished

    def take_pending(self) -> Optional[PreviewCommand]:
        command, self._pending = self._pending, None
        return command

    def clear_pending(self) -> None:
        self._pending = None

    def expired(self) -> Optional[InFlightCommand]:
        """Return the in-flight command if it outlived the timeout."""
        if self._in_flight is not None and self._in_flight.is_expired(self._clock()):
            return self._in_flight
        return None

    def elapsed(self) -> float:
        if self._in_flight is None:
            return 0.0
        return self._in_flight.elapsed(self._clock())


__all__ = ["CommandSlot", "InFlightCommand", "SlotDecision"]
