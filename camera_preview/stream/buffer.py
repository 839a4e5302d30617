"""Bounded packet queue between the stream server and the player."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Optional

from camera_preview.core.logging_utils import get_module_logger
from camera_preview.preview.interfaces import FillLevel, FillLevelListener

from .framing import StreamPacket

logger = get_module_logger("StreamBuffer")


class StreamBuffer:
    """Thread-safe packet queue reporting fill-level transitions.

    Levels (counted in packets):
    - EMPTY: nothing queued
    - LOW: fewer than ``low_watermark`` packets
    - READY: at least ``ready_watermark`` packets
    Between the two watermarks the previous level is kept.

    The listener is called only when the level changes, never while the
    buffer's own lock is held.
    """

    def __init__(self, capacity: int = 256, low_watermark: int = 8, ready_watermark: int = 32) -> None:
        if not 0 < low_watermark <= ready_watermark <= capacity:
            raise ValueError(
                f"Invalid watermarks: low={low_watermark} ready={ready_watermark} capacity={capacity}"
            )
        self._capacity = capacity
        self._low = low_watermark
        self._ready = ready_watermark
        self._packets: deque[StreamPacket] = deque()
        self._cond = threading.Condition()
        self._level = FillLevel.EMPTY
        self._end_of_stream = False
        self._listener: Optional[FillLevelListener] = None

    def set_fill_level_listener(self, listener: Optional[FillLevelListener]) -> None:
        self._listener = listener

    # ------------------------------------------------------------------
    # Producer side

    def put(self, packet: StreamPacket, timeout: Optional[float] = None) -> bool:
        """Queue ``packet``, waiting up to ``timeout`` for space.

        Returns False if the buffer stayed full.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while len(self._packets) >= self._capacity:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
            self._packets.append(packet)
            self._end_of_stream = False
            changed = self._update_level()
            self._cond.notify_all()
        self._fire(changed)
        return True

    def mark_end_of_stream(self) -> None:
        with self._cond:
            self._end_of_stream = True
            self._cond.notify_all()

    def clear(self) -> None:
        with self._cond:
            self._packets.clear()
            self._end_of_stream = False
            changed = self._update_level()
            self._cond.notify_all()
        self._fire(changed)

    # ------------------------------------------------------------------
    # Consumer side

    def get(self, timeout: Optional[float] = None) -> Optional[StreamPacket]:
        """Return the next packet, or None if none arrived within ``timeout``."""
        with self._cond:
            if not self._packets:
                self._cond.wait_for(lambda: self._packets or self._end_of_stream, timeout)
            if not self._packets:
                return None
            packet = self._packets.popleft()
            changed = self._update_level()
            self._cond.notify_all()
        self._fire(changed)
        return packet

    # ------------------------------------------------------------------
    # State

    @property
    def level(self) -> FillLevel:
        return self._level

    @property
    def end_of_stream(self) -> bool:
        return self._end_of_stream

    @property
    def drained(self) -> bool:
        with self._cond:
            return self._end_of_stream and not self._packets

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._cond:
            return len(self._packets)

    def _update_level(self) -> Optional[FillLevel]:
        size = len(self._packets)
        if size == 0:
            level = FillLevel.EMPTY
        elif size >= self._ready:
            level = FillLevel.READY
        elif size < self._low:
            level = FillLevel.LOW
        else:
            level = self._level
            if level is FillLevel.EMPTY:
                level = FillLevel.LOW
        if level is self._level:
            return None
        self._level = level
        return level

    def _fire(self, level: Optional[FillLevel]) -> None:
        if level is None:
            return
        listener = self._listener
        if listener is None:
            return
        if level is not self._level:
            # superseded by a later transition on another thread
            return
        logger.debug("Fill level -> %s", level.value)
        listener(level)


__all__ = ["StreamBuffer"]
