"""End-to-end preview of a playlist streamed by a fake camera.

The runtime talks HTTP to the fake camera, which connects back to the local
stream server and sends framed packets. Decoding is a passthrough so the
test needs no codec.
"""

from __future__ import annotations

import asyncio

import pytest

from camera_preview.preview import Clip, PreviewState
from camera_preview.runtime import PreviewRuntime
from tests.infrastructure.mocks.preview_mocks import RecordingListener

pytestmark = [pytest.mark.integration, pytest.mark.network]


class SignallingListener(RecordingListener):
    """Records events and wakes the test when the preview ends."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._loop = loop
        self.ended = asyncio.Event()

    def on_end_received(self) -> None:
        super().on_end_received()
        self._loop.call_soon_threadsafe(self.ended.set)


class TestPreviewPipeline:
    """Full pipeline against the fake camera."""

    @pytest.mark.asyncio
    async def test_playlist_plays_through_both_clips(
        self, fake_camera, pipeline_config, passthrough_decoder
    ):
        listener = SignallingListener(asyncio.get_running_loop())

        async with PreviewRuntime(pipeline_config, listener, decoder=passthrough_decoder) as runtime:
            runtime.orchestrator.prepare([Clip("A", 0.2), Clip("B", 0.2)])
            runtime.orchestrator.start()

            await asyncio.wait_for(listener.ended.wait(), timeout=10.0)

            assert runtime.orchestrator.state is PreviewState.ACTIVE
            assert runtime.orchestrator.get_current_playable().clip_id == "B"

        assert listener.named("total") == [400]
        assert listener.named("started") == [0]
        assert listener.named("end") == [None]

        progress = listener.named("progress")
        assert progress[0] == 0
        assert 200 in progress
        assert progress == sorted(progress)
        assert max(progress) < 400

        starts = [payload for method, payload in fake_camera.requests if method == "POST"]
        assert [payload["video_id"] for payload in starts] == ["A", "B"]
        assert starts[0]["start_position_secs"] == pytest.approx(0.0)
        assert starts[0]["length_secs"] == pytest.approx(0.2)
        assert starts[0]["preview_video_port"] == starts[1]["preview_video_port"]
        assert fake_camera.methods[0] == "POST"
        # runtime shutdown stops the clip that was playing
        assert fake_camera.methods[-1] == "DELETE"
        assert passthrough_decoder.resets == 2

    @pytest.mark.asyncio
    async def test_seek_into_second_clip(self, fake_camera, pipeline_config, passthrough_decoder):
        listener = SignallingListener(asyncio.get_running_loop())
        clips = [Clip("A", 0.2), Clip("B", 0.4, start_offset_secs=1.0)]

        async with PreviewRuntime(pipeline_config, listener, decoder=passthrough_decoder) as runtime:
            runtime.orchestrator.prepare(clips)
            runtime.orchestrator.seek(400)

            await asyncio.wait_for(listener.ended.wait(), timeout=10.0)

        assert listener.named("started") == [400]
        assert listener.named("progress")[0] == 400
        first = fake_camera.requests[0]
        assert first[0] == "POST"
        assert first[1]["video_id"] == "B"
        assert first[1]["start_position_secs"] == pytest.approx(1.2)
        assert first[1]["length_secs"] == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_rejected_start_reports_error(self, fake_camera, pipeline_config, passthrough_decoder):
        fake_camera.status = 503
        pipeline_config.max_consecutive_failures = 1
        listener = SignallingListener(asyncio.get_running_loop())

        async with PreviewRuntime(pipeline_config, listener, decoder=passthrough_decoder) as runtime:
            runtime.orchestrator.prepare([Clip("A", 0.2)])
            runtime.orchestrator.start()

            for _ in range(100):
                if listener.named("error"):
                    break
                await asyncio.sleep(0.05)

            assert runtime.orchestrator.state is PreviewState.IDLE

        assert len(listener.named("error")) == 1
        assert listener.named("started") == []
        assert fake_camera.methods == ["POST"]
