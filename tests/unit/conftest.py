"""Unit test fixtures for isolated, fast test execution.

This conftest provides fixtures specifically for unit tests that:
- Run in complete isolation (no camera, no decoder)
- Execute quickly (< 1s per test)
- Use in-memory fakes for every orchestrator collaborator
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import pytest

from camera_preview.config import PreviewConfig
from camera_preview.preview import Clip, PreviewOrchestrator
from tests.infrastructure.mocks.preview_mocks import (
    FakeClock,
    FakeCommandChannel,
    FakePlayer,
    FakeStreamBuffer,
    FakeStreamServer,
    FakeSurface,
    RecordingListener,
)


@dataclass
class PreviewRig:
    """An orchestrator wired to fakes, plus handles on each fake."""
    orchestrator: PreviewOrchestrator
    channel: FakeCommandChannel
    server: FakeStreamServer
    buffer: FakeStreamBuffer
    player: FakePlayer
    surface: FakeSurface
    listener: RecordingListener
    clock: FakeClock

    def ack(self, success: bool = True) -> None:
        self.orchestrator.on_remote_command_ack(success)

    def first_frame(self, pts_ms: int = 0, data: Any = "frame") -> None:
        self.orchestrator.on_frame(data, pts_ms, True)

    def frame(self, pts_ms: int, data: Any = "frame") -> None:
        self.orchestrator.on_frame(data, pts_ms, False)


@pytest.fixture
def make_rig() -> Callable[..., PreviewRig]:
    """Factory for orchestrator rigs with optional config overrides.

    Example:
        def test_something(make_rig):
            rig = make_rig(max_consecutive_failures=2)
    """

    def factory(config: Optional[PreviewConfig] = None, **overrides: Any) -> PreviewRig:
        if config is None:
            config = PreviewConfig(**overrides)
        clock = FakeClock()
        channel = FakeCommandChannel()
        server = FakeStreamServer()
        buffer = FakeStreamBuffer()
        player = FakePlayer()
        surface = FakeSurface()
        listener = RecordingListener()
        orchestrator = PreviewOrchestrator(
            channel, server, buffer, player, surface, listener,
            config=config, clock=clock,
        )
        return PreviewRig(orchestrator, channel, server, buffer, player, surface, listener, clock)

    return factory


@pytest.fixture
def rig(make_rig) -> PreviewRig:
    return make_rig()


@pytest.fixture
def two_clips() -> list[Clip]:
    """Clips A (10s) and B (8s)."""
    return [Clip("A", 10.0), Clip("B", 8.0)]


@pytest.fixture
def prepared_rig(rig: PreviewRig, two_clips: list[Clip]) -> PreviewRig:
    rig.orchestrator.prepare(two_clips)
    return rig
