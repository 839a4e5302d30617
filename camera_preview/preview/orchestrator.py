"""
Preview Orchestrator - synchronized preview of a playlist streamed from a camera.

Owns the timeline of a prepared playlist and mediates between the command
channel, the stream server/buffer pair and the player. Seeks are resolved to a
clip and a local offset, turned into start/stop commands, and pushed through a
command slot that keeps a single command in flight.

Callbacks arrive from three places: command acknowledgments (transport),
fill-level changes (stream buffer) and frames/end of stream (player, server).
Every entry point runs under one re-entrant lock.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any, Callable, Iterable, Optional

from camera_preview.config import PreviewConfig
from camera_preview.core.logging_utils import get_module_logger

from .commands import CommandSlot, SlotDecision
from .errors import (
    AlreadyPreparedError,
    CommandTimeoutError,
    Diagnostic,
    DiagnosticKind,
    InvalidInputError,
    NotInitializedError,
    RemoteNackError,
)
from .interfaces import (
    CommandChannel,
    FillLevel,
    Player,
    PreviewListener,
    StreamBufferLike,
    StreamServer,
    VideoSurface,
)
from .model import (
    MILLISECONDS,
    Clip,
    CommandKind,
    PreviewCommand,
    PreviewSession,
    PreviewState,
    TimelineEntry,
    secs_to_ms,
)
from .timeline import Timeline


class PreviewOrchestrator:
    """
    Drives preview playback of a playlist on a remote camera.

    Usage:
        orchestrator = PreviewOrchestrator(channel, server, buffer, player, surface, listener)
        orchestrator.prepare([Clip("a", 10.0), Clip("b", 8.0)])
        orchestrator.start()
        ...
        # transport layer, when the camera answers the command it was sent:
        orchestrator.on_remote_command_ack(True, command=command)

    State transitions:
    - UNPREPARED -> IDLE: prepare()
    - IDLE -> ACTIVE: successful start acknowledgment
    - ACTIVE -> IDLE: successful stop acknowledgment
    - any -> UNPREPARED: release()
    """

    def __init__(
        self,
        channel: CommandChannel,
        stream_server: StreamServer,
        stream_buffer: StreamBufferLike,
        player: Player,
        surface: VideoSurface,
        listener: Optional[PreviewListener] = None,
        *,
        config: Optional[PreviewConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.logger = get_module_logger("PreviewOrchestrator")
        config = config or PreviewConfig()

        self._channel = channel
        self._stream_server = stream_server
        self._player = player
        self._surface = surface
        self._listener = listener

        self._lock = threading.RLock()
        self._commands = CommandSlot(timeout=config.command_timeout_secs, clock=clock)
        self._diagnostics: deque[Diagnostic] = deque(maxlen=config.diagnostics_history)
        self._max_failures = config.max_consecutive_failures
        self._consecutive_failures = 0

        self._session: Optional[PreviewSession] = None
        self._preview_active = False
        self._should_play_sound = config.volume_enabled

        stream_buffer.set_fill_level_listener(self.on_fill_level)
        stream_server.set_end_of_stream_handler(self.on_end_of_stream)
        player.set_callback(self)
        player.set_volume_enabled(self._should_play_sound)

    # ------------------------------------------------------------------
    # Lifecycle

    def set_listener(self, listener: Optional[PreviewListener]) -> None:
        with self._lock:
            self._listener = listener

    def prepare(self, clips: Iterable[Any]) -> Timeline:
        """Build the timeline for ``clips`` and report its total length."""
        with self._lock:
            if self._session is not None:
                raise AlreadyPreparedError()
            if clips is None:
                raise InvalidInputError("A clip list is required")

            playable_files = tuple(clips)
            copies: list[Clip] = []
            skipped: list[int] = []
            for index, playable in enumerate(playable_files):
                try:
                    copies.append(Clip.from_playable(playable))
                except (AttributeError, KeyError, TypeError, ValueError) as exc:
                    skipped.append(index)
                    self._diagnose(
                        DiagnosticKind.CLIP_SKIPPED,
                        f"Could not copy clip #{index} ({playable!r}): {exc}",
                    )

            timeline = Timeline.build(copies)
            self._session = PreviewSession(
                timeline=timeline,
                playable_files=playable_files,
                skipped=skipped,
            )
            self.logger.info(
                "Prepared preview: %d clip(s), %dms total", len(timeline), timeline.total_ms
            )
            self._notify("on_total_length_set", timeline.total_ms)
            return timeline

    def release(self) -> None:
        """Drop the prepared playlist. Safe to call in any state."""
        with self._lock:
            self.logger.debug("Releasing preview...")
            self._session = None
            self._commands.clear_pending()
            if self._stream_server.is_running():
                self._stream_server.stop()

    # ------------------------------------------------------------------
    # Playback control

    def start(self) -> None:
        with self._lock:
            self._require_session()
            self.seek(0)

    def stop(self) -> None:
        with self._lock:
            session = self._session
            if not self._preview_active or session is None or session.current_clip is None:
                self._surface.stop()
                return

            self.logger.info("Stopping preview video")
            self._stop_stream_server()
            self._send_stop(session.current_clip)

    def pause(self, paused: bool) -> None:
        with self._lock:
            if paused:
                self.stop()
                if self._stream_server.is_running():
                    self._stream_server.stop()
            else:
                self.start()

    def seek(self, position_ms: int) -> None:
        """Seek to ``position_ms`` on the timeline and stream to the end of that clip."""
        with self._lock:
            session = self._require_session()
            timeline = session.timeline
            index, local_secs = timeline.locate(position_ms)
            if timeline.is_end(position_ms):
                self.logger.info("Seek to end of timeline (%dms)", position_ms)
                self._notify("on_end_received")
                return

            self._begin_seek(session, index, position_ms, bounded=False)
            self._seek_in_clip(session, timeline.entry(index), local_secs)

    def seek_bounded(self, position_secs: float, duration_secs: float) -> None:
        """Seek to ``position_secs`` and stream only ``duration_secs`` of that clip."""
        with self._lock:
            session = self._require_session()
            if duration_secs is None or duration_secs <= 0:
                raise InvalidInputError(f"Preview duration must be positive, got {duration_secs}")

            timeline = session.timeline
            position_ms = secs_to_ms(position_secs)
            index, local_secs = timeline.locate(position_ms)
            if timeline.is_end(position_ms):
                self.logger.info("Bounded seek to end of timeline (%dms)", position_ms)
                self._notify("on_end_received")
                return

            self._begin_seek(session, index, position_ms, bounded=True)
            self._seek_in_clip(session, timeline.entry(index), local_secs, length_secs=duration_secs)

    def set_volume_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._should_play_sound = enabled
            self._player.set_volume_enabled(enabled)

    def is_volume_enabled(self) -> bool:
        return self._should_play_sound

    # ------------------------------------------------------------------
    # Camera acknowledgments

    def on_remote_command_ack(
        self,
        success: bool,
        kind: Optional[CommandKind] = None,
        command: Optional[PreviewCommand] = None,
    ) -> None:
        """Handle the camera's answer to the in-flight command.

        ``kind`` tells a start acknowledgment from a stop acknowledgment; it
        defaults to the kind of the command that was in flight.

        When ``command`` is given it must be the in-flight command itself. An
        answer to any other command (for example one the watchdog already
        expired) is recorded as a stray acknowledgment and otherwise ignored.
        """
        with self._lock:
            if command is not None:
                in_flight = self._commands.in_flight
                if in_flight is None or in_flight.command is not command:
                    self._diagnose(
                        DiagnosticKind.STRAY_ACK,
                        f"Acknowledgment (success={success}) for {command.kind.value} "
                        f"{command.clip_id} which is not in flight",
                        command,
                    )
                    return
                kind = command.kind

            finished = self._commands.complete()
            command = finished.command if finished is not None else None
            if command is None:
                self._diagnose(DiagnosticKind.STRAY_ACK, f"Acknowledgment (success={success}) with nothing in flight")
            if kind is None and command is not None:
                kind = command.kind

            if not success:
                self._consecutive_failures += 1
                self._diagnose(
                    DiagnosticKind.REMOTE_NACK,
                    f"Camera rejected {kind.value if kind else 'unknown'} command "
                    f"({self._consecutive_failures} in a row)",
                    command,
                )
                if self._max_failures > 0 and self._consecutive_failures == self._max_failures:
                    self._notify(
                        "on_preview_error",
                        RemoteNackError(command, self._consecutive_failures),
                    )
                return

            self._consecutive_failures = 0
            if kind is CommandKind.START:
                self._preview_active = True
                self.logger.info("PreviewVideo started")
            elif kind is CommandKind.STOP:
                self._preview_active = False
                self.logger.info("PreviewVideo stopped")

            self._send_pending_start()

    def on_preview_started(self, success: bool) -> None:
        self.on_remote_command_ack(success, CommandKind.START)

    def on_preview_stopped(self, success: bool) -> None:
        self.on_remote_command_ack(success, CommandKind.STOP)

    def expire_stale_command(self) -> bool:
        """Give up on an in-flight command that was never acknowledged.

        Returns True if a command was expired.
        """
        with self._lock:
            stale = self._commands.expired()
            if stale is None:
                return False

            elapsed = self._commands.elapsed()
            self._commands.complete()
            self._diagnose(
                DiagnosticKind.COMMAND_TIMEOUT,
                f"No acknowledgment for {stale.command.kind.value} after {elapsed:.1f}s",
                stale.command,
            )
            self._notify("on_preview_error", CommandTimeoutError(stale.command, elapsed))
            self._send_pending_start()
            return True

    # ------------------------------------------------------------------
    # Stream / player events

    def on_fill_level(self, level: FillLevel) -> None:
        with self._lock:
            if level is FillLevel.EMPTY:
                self.logger.info("Buffering is empty")
                self._player.stop()
            elif level is FillLevel.LOW:
                self.logger.info("Buffering is low")
            elif level is FillLevel.READY:
                self.logger.info("Buffering is ready")
                self._player.play()

    def on_end_of_stream(self) -> None:
        """The camera finished streaming the requested region."""
        with self._lock:
            self._player.play()
            session = self._session
            if session is None or session.bounded:
                return

            timeline = session.timeline
            if session.buffering_index >= timeline.last_index:
                return

            session.buffering_index += 1
            entry = timeline.entry(session.buffering_index)
            session.current_seek_ms = entry.offset_ms
            self.logger.info("Advancing preview to clip %d (%s)", entry.index, entry.clip.clip_id)
            self._seek_in_clip(session, entry, 0.0, restart_stream=False)

    def on_frame(self, data: Any, pts_ms: int, is_first_frame: bool) -> None:
        with self._lock:
            session = self._session
            if session is None:
                return

            if is_first_frame:
                if session.playing_index < session.timeline.last_index:
                    session.playing_index += 1
                if session.preview_started_pending:
                    session.preview_started_pending = False
                    self._notify("on_preview_started", session.current_seek_ms)
            elif session.just_restarted:
                # tail frame of the stream that was playing before the seek
                session.just_restarted = False
                return

            if session.playing_index < 0:
                return

            entry = session.timeline.entry(session.playing_index)
            clip = entry.clip
            self._player.set_volume_enabled(self._should_play_sound and not clip.muted)

            progress = pts_ms - int(round((clip.start_offset_secs - entry.offset_secs) * MILLISECONDS))
            self._notify("on_preview_time_progress", progress)
            self._surface.draw_frame(data, pts_ms, is_first_frame)

    def on_playback_finished(self) -> None:
        with self._lock:
            session = self._session
            if session is None:
                return
            last = session.timeline.last_index
            # a drained clip is only the end once the last clip is the one playing
            if session.bounded or (session.buffering_index >= last and session.playing_index >= last):
                self._notify("on_end_received")

    # ------------------------------------------------------------------
    # Queries

    @property
    def state(self) -> PreviewState:
        if self._session is None:
            return PreviewState.UNPREPARED
        return PreviewState.ACTIVE if self._preview_active else PreviewState.IDLE

    @property
    def timeline(self) -> Optional[Timeline]:
        session = self._session
        return session.timeline if session is not None else None

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        with self._lock:
            return tuple(self._diagnostics)

    @property
    def pending_command(self) -> Optional[PreviewCommand]:
        return self._commands.pending

    @property
    def in_flight_command(self) -> Optional[PreviewCommand]:
        in_flight = self._commands.in_flight
        return in_flight.command if in_flight is not None else None

    def is_preview_active(self) -> bool:
        return self._preview_active

    def get_current_playable(self) -> Optional[Clip]:
        with self._lock:
            session = self._session
            if session is None:
                return None
            if session.playing_index > -1:
                return session.timeline.entry(session.playing_index).clip
            return session.current_clip

    def get_playable_files(self) -> Optional[tuple[Any, ...]]:
        session = self._session
        return tuple(session.playable_files) if session is not None else None

    def get_playable_index_at(self, position_ms: int) -> int:
        with self._lock:
            return self._require_session().timeline.index_at(position_ms)

    def get_playable_id_and_offset(self, position_ms: int) -> tuple[str, float]:
        with self._lock:
            return self._require_session().timeline.id_and_offset(position_ms)

    # ------------------------------------------------------------------
    # Internals

    def _require_session(self) -> PreviewSession:
        if self._session is None:
            raise NotInitializedError()
        return self._session

    @staticmethod
    def _begin_seek(session: PreviewSession, index: int, position_ms: int, *, bounded: bool) -> None:
        session.current_seek_ms = position_ms
        session.just_restarted = True
        session.preview_started_pending = True
        session.bounded = bounded
        session.buffering_index = index
        session.playing_index = index - 1

    def _seek_in_clip(
        self,
        session: PreviewSession,
        entry: TimelineEntry,
        local_secs: float,
        *,
        length_secs: Optional[float] = None,
        restart_stream: bool = True,
    ) -> None:
        previous_clip = session.current_clip
        clip = entry.clip
        session.current_clip = clip

        if length_secs is None:
            length_secs = clip.duration_secs - local_secs
        start_offset = clip.start_offset_secs + local_secs

        if self._preview_active:
            self._commands.schedule(
                PreviewCommand.start(clip.clip_id, self._stream_server.port, start_offset, length_secs)
            )
            if restart_stream:
                self._stop_stream_server()
            self._send_stop(previous_clip or clip)
        else:
            port = self._stream_server.start()
            self.logger.info("Sending seek preview command (%s @ %.3fs)", clip.clip_id, start_offset)
            self._send_command(PreviewCommand.start(clip.clip_id, port, start_offset, length_secs))

    def _stop_stream_server(self) -> None:
        self._stream_server.stop()
        self._surface.stop_drawing()

    def _send_stop(self, clip: Optional[Clip]) -> None:
        if clip is None:
            self._diagnose(DiagnosticKind.MISSING_CURRENT_CLIP, "Stop requested without a current clip")
            return
        self.logger.info("Sending stop preview command (%s)", clip.clip_id)
        self._send_command(PreviewCommand.stop(clip.clip_id, self._stream_server.port))

    def _send_pending_start(self) -> None:
        command = self._commands.take_pending()
        if command is None:
            return
        port = self._stream_server.start()
        self.logger.info("Sending scheduled start (%s)", command.clip_id)
        self._send_command(command.with_port(port))

    def _send_command(self, command: Optional[PreviewCommand]) -> None:
        decision = self._commands.submit(command)
        if decision is SlotDecision.SEND:
            try:
                self._channel.send(command)
            except Exception as exc:
                self.logger.exception("Command channel failed to send %s: %s", command.kind.value, exc)
                self.on_remote_command_ack(False, command=command)
        elif decision is SlotDecision.DROPPED_STOP:
            self._diagnose(
                DiagnosticKind.COMMAND_DROPPED,
                f"Dropped {command.kind.value} while another command is in flight",
                command,
            )
        elif decision is SlotDecision.DROPPED_NULL:
            self._diagnose(DiagnosticKind.NULL_COMMAND, "Null command sent")

    def _diagnose(self, kind: DiagnosticKind, message: str, command: Optional[PreviewCommand] = None) -> None:
        self._diagnostics.append(Diagnostic(kind, message, command))
        self.logger.warning("%s: %s", kind.value, message)

    def _notify(self, method: str, *args: Any) -> None:
        listener = self._listener
        if listener is None:
            return
        try:
            getattr(listener, method)(*args)
        except Exception as exc:
            self.logger.exception("Listener %s failed: %s", method, exc)


__all__ = ["PreviewOrchestrator"]
