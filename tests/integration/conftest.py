"""Integration test fixtures for multi-component testing.

This conftest provides fixtures for tests that run the real preview pipeline
(HTTP channel, stream server, buffer, player thread) against a fake camera
served on localhost.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, List

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from camera_preview.config import PreviewConfig
from tests.infrastructure.mocks.preview_mocks import FakeCamera


# =============================================================================
# Decoder
# =============================================================================


class PassthroughDecoder:
    """Hands every payload through as one frame."""

    def __init__(self) -> None:
        self.resets = 0

    def decode(self, payload: bytes) -> List[Any]:
        return [payload]

    def reset(self) -> None:
        self.resets += 1


@pytest.fixture
def passthrough_decoder() -> PassthroughDecoder:
    return PassthroughDecoder()


# =============================================================================
# Fake camera
# =============================================================================


@pytest.fixture
def fake_camera() -> FakeCamera:
    return FakeCamera(host="127.0.0.1")


@pytest_asyncio.fixture
async def camera_server(fake_camera: FakeCamera) -> AsyncIterator[TestServer]:
    """Serve the fake camera's preview endpoint on a free localhost port."""
    server = TestServer(fake_camera.create_app(), host="127.0.0.1")
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture
def pipeline_config(camera_server: TestServer) -> PreviewConfig:
    """Config pointing the runtime at the fake camera with small watermarks."""
    return PreviewConfig(
        camera_host="127.0.0.1",
        camera_port=camera_server.port,
        stream_host="127.0.0.1",
        stream_port=0,
        buffer_capacity=16,
        buffer_low_watermark=1,
        buffer_ready_watermark=2,
        request_timeout_secs=1.0,
        command_timeout_secs=2.0,
        watchdog_interval_secs=0.1,
    )
