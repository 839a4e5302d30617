"""Preview player: consumes the stream buffer on a worker thread."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any, Callable, Optional, Protocol

from camera_preview.core.logging_utils import get_module_logger
from camera_preview.preview.interfaces import PlayerCallback
from camera_preview.stream.buffer import StreamBuffer

from .decoder import H264Decoder

logger = get_module_logger("PreviewPlayer")

_POLL_INTERVAL = 0.1
# lagging further than this re-anchors the clock instead of racing to catch up
_MAX_LAG_SECS = 0.5


class FrameDecoder(Protocol):
    def decode(self, payload: bytes) -> list[Any]:
        ...

    def reset(self) -> None:
        ...


class PreviewPlayer:
    """Pulls packets from the buffer, decodes them and paces frame delivery.

    ``play()``/``stop()`` gate consumption; the worker thread keeps running
    until ``shutdown()``. Callbacks are invoked from the worker thread with no
    player lock held.
    """

    def __init__(
        self,
        buffer: StreamBuffer,
        decoder: Optional[FrameDecoder] = None,
        *,
        poll_interval: float = _POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._buffer = buffer
        self._decoder = decoder if decoder is not None else H264Decoder()
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

        self._callback: Optional[PlayerCallback] = None
        self._playing = threading.Event()
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._volume_enabled = True
        self._finished_reported = False
        self._pending_pts: deque[tuple[int, bool]] = deque()
        self._anchor: Optional[tuple[float, int]] = None
        self._frames_delivered = 0
        self._error: Optional[Exception] = None

    # ------------------------------------------------------------------
    # Control

    def set_callback(self, callback: Optional[PlayerCallback]) -> None:
        self._callback = callback

    def play(self) -> None:
        if not self._playing.is_set():
            logger.debug("Playback resumed")
        self._playing.set()

    def stop(self) -> None:
        if self._playing.is_set():
            logger.debug("Playback paused")
        self._playing.clear()
        self._anchor = None

    @property
    def playing(self) -> bool:
        return self._playing.is_set()

    def set_volume_enabled(self, enabled: bool) -> None:
        self._volume_enabled = enabled

    @property
    def volume_enabled(self) -> bool:
        return self._volume_enabled

    @property
    def frames_delivered(self) -> int:
        return self._frames_delivered

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    # ------------------------------------------------------------------
    # Worker thread

    def start_worker(self) -> None:
        if self._thread is not None:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._run,
            name=f"preview-player-{id(self)}",
            daemon=True,
        )
        self._thread.start()

    def shutdown(self, timeout: float = 2.0) -> None:
        if self._thread is None:
            return
        self._running = False
        self._playing.set()  # wake the loop so it can exit
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Player thread did not stop within %.1fs", timeout)
        self._thread = None
        self._playing.clear()

    def _run(self) -> None:
        while self._running:
            if not self._playing.wait(self._poll_interval):
                self._check_finished()
                continue
            if not self._running:
                break
            try:
                self.step()
            except Exception as e:
                self._error = e
                logger.exception("Player step failed: %s", e)

    def step(self, timeout: Optional[float] = None) -> bool:
        """Consume one packet. Returns True if a packet was processed."""
        packet = self._buffer.get(self._poll_interval if timeout is None else timeout)
        if packet is None:
            self._check_finished()
            return False

        self._finished_reported = False
        if packet.is_first_frame:
            self._decoder.reset()
            self._pending_pts.clear()
            self._anchor = None

        self._pending_pts.append((packet.pts_ms, packet.is_first_frame))
        for frame in self._decoder.decode(packet.payload):
            if self._pending_pts:
                pts_ms, is_first = self._pending_pts.popleft()
            else:
                pts_ms, is_first = packet.pts_ms, False
            self._deliver(frame, pts_ms, is_first)
        return True

    def _check_finished(self) -> None:
        if self._finished_reported or not self._buffer.drained:
            return
        self._finished_reported = True
        self._pending_pts.clear()
        callback = self._callback
        if callback is not None:
            callback.on_playback_finished()

    def _deliver(self, frame: Any, pts_ms: int, is_first_frame: bool) -> None:
        self._pace(pts_ms)
        self._frames_delivered += 1
        callback = self._callback
        if callback is not None:
            callback.on_frame(frame, pts_ms, is_first_frame)

    def _pace(self, pts_ms: int) -> None:
        now = self._clock()
        anchor = self._anchor
        if anchor is None or pts_ms < anchor[1]:
            self._anchor = (now, pts_ms)
            return
        delay = anchor[0] + (pts_ms - anchor[1]) / 1000.0 - now
        if delay > 0:
            self._sleep(delay)
        elif delay < -_MAX_LAG_SECS:
            self._anchor = (now, pts_ms)


__all__ = ["PreviewPlayer", "FrameDecoder"]
