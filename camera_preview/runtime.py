"""
Preview runtime

Wires the orchestrator to the concrete collaborators: HTTP command channel,
stream server and buffer, PyAV player and frame-cache surface. Owns the
background tasks (player worker thread, command watchdog) and tears them down
in order.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from camera_preview.config import PreviewConfig
from camera_preview.core.async_utils import cancel_task_safely
from camera_preview.core.logging_utils import get_module_logger
from camera_preview.playback import FrameCacheSurface, FrameDecoder, PreviewPlayer
from camera_preview.preview import PreviewCommand, PreviewListener, PreviewOrchestrator
from camera_preview.stream import PreviewStreamServer, StreamBuffer
from camera_preview.transport import HttpCommandChannel

logger = get_module_logger("PreviewRuntime")


class PreviewRuntime:
    """Builds and runs a complete preview pipeline on the current event loop.

    Usage:
        async with PreviewRuntime(config, listener) as runtime:
            runtime.orchestrator.prepare(clips)
            runtime.orchestrator.start()
            ...
    """

    def __init__(
        self,
        config: Optional[PreviewConfig] = None,
        listener: Optional[PreviewListener] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        decoder: Optional[FrameDecoder] = None,
    ) -> None:
        self.config = config or PreviewConfig()
        self.loop = loop or asyncio.get_running_loop()

        cfg = self.config
        self.buffer = StreamBuffer(
            capacity=cfg.buffer_capacity,
            low_watermark=cfg.buffer_low_watermark,
            ready_watermark=cfg.buffer_ready_watermark,
        )
        self.stream_server = PreviewStreamServer(
            self.buffer, cfg.stream_host, cfg.stream_port, loop=self.loop
        )
        self.player = PreviewPlayer(self.buffer, decoder)
        self.surface = FrameCacheSurface()
        self.channel = HttpCommandChannel(
            cfg.camera_base_url,
            loop=self.loop,
            ack_callback=self._on_ack,
            timeout_secs=cfg.request_timeout_secs,
            preview_path=cfg.preview_path,
        )
        self._orchestrator = PreviewOrchestrator(
            self.channel,
            self.stream_server,
            self.buffer,
            self.player,
            self.surface,
            listener,
            config=cfg,
        )

        self._running = False
        self._watchdog_task: Optional[asyncio.Task] = None

    @property
    def orchestrator(self) -> PreviewOrchestrator:
        return self._orchestrator

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.player.start_worker()
        self._watchdog_task = asyncio.create_task(self._watchdog_loop())
        logger.info("Preview runtime started (camera %s)", self.config.camera_base_url)

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False

        self._orchestrator.stop()
        self._orchestrator.release()
        self.surface.stop()
        await cancel_task_safely(self._watchdog_task, "Command watchdog", logger_instance=logger)
        self._watchdog_task = None
        await asyncio.to_thread(self.player.shutdown)
        await self.channel.close()
        logger.info("Preview runtime stopped")

    async def __aenter__(self) -> "PreviewRuntime":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
        return False

    def _on_ack(self, command: PreviewCommand, success: bool) -> None:
        self._orchestrator.on_remote_command_ack(success, command=command)

    async def _watchdog_loop(self) -> None:
        """Expire commands the camera never answered."""
        interval = self.config.watchdog_interval_secs
        while self._running:
            try:
                await asyncio.sleep(interval)
                self._orchestrator.expire_stale_command()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Command watchdog error: %s", e, exc_info=True)


__all__ = ["PreviewRuntime"]
