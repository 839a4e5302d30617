"""
HTTP command channel

Delivers preview start/stop commands to the camera's REST endpoint. Requests
run on the owning event loop; the outcome is reported through the ack
callback so the orchestrator never waits on the network.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Callable, Coroutine, Optional

import aiohttp

from camera_preview.core.logging_utils import get_module_logger
from camera_preview.preview.model import CommandKind, PreviewCommand

AckCallback = Callable[[PreviewCommand, bool], None]

DEFAULT_PREVIEW_PATH = "/api/2/preview"


class HttpCommandChannel:
    """Sends preview commands over HTTP.

    ``Start`` is a POST to the preview path and ``Stop`` a DELETE on the same
    path, both carrying the command's JSON payload. Any 2xx answer counts as
    an acknowledgment; anything else, including network errors and timeouts,
    is reported as a failure.
    """

    def __init__(
        self,
        base_url: str,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        ack_callback: Optional[AckCallback] = None,
        timeout_secs: float = 5.0,
        preview_path: str = DEFAULT_PREVIEW_PATH,
    ) -> None:
        self.logger = get_module_logger("HttpCommandChannel")
        self._url = base_url.rstrip("/") + "/" + preview_path.lstrip("/")
        self._loop = loop
        self._ack_callback = ack_callback
        self._timeout = aiohttp.ClientTimeout(total=timeout_secs)
        self._session: Optional[aiohttp.ClientSession] = None
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[concurrent.futures.Future] = set()
        self._closed = False

    @property
    def url(self) -> str:
        return self._url

    def set_ack_callback(self, callback: Optional[AckCallback]) -> None:
        self._ack_callback = callback

    def send(self, command: PreviewCommand) -> None:
        if self._closed:
            raise RuntimeError("Command channel is closed")
        loop = self._resolve_loop()
        self._submit(loop, self._execute(command))

    async def request(self, command: PreviewCommand) -> bool:
        """Perform the HTTP exchange for ``command`` and return whether it succeeded."""
        method = "POST" if command.kind is CommandKind.START else "DELETE"
        session = self._ensure_session()
        try:
            async with session.request(method, self._url, json=command.to_payload()) as resp:
                if 200 <= resp.status < 300:
                    self.logger.debug("%s %s -> %d", method, self._url, resp.status)
                    return True
                body = await resp.text()
                self.logger.warning(
                    "Camera refused %s command: HTTP %d %s", command.kind.value, resp.status, body[:200]
                )
                return False
        except asyncio.TimeoutError:
            self.logger.warning("Timed out sending %s command to %s", command.kind.value, self._url)
            return False
        except aiohttp.ClientError as e:
            self.logger.warning("Failed to send %s command to %s: %s", command.kind.value, self._url, e)
            return False

    async def close(self) -> None:
        self._closed = True
        pending = [task for task in self._tasks if not task.done()]
        pending.extend(asyncio.wrap_future(future) for future in self._futures if not future.done())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    # ------------------------------------------------------------------

    async def _execute(self, command: PreviewCommand) -> None:
        success = await self.request(command)
        callback = self._ack_callback
        if callback is None:
            return
        try:
            callback(command, success)
        except Exception as e:
            self.logger.exception("Ack callback failed for %s: %s", command.kind.value, e)

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise RuntimeError("HttpCommandChannel needs an event loop") from exc
        return self._loop

    def _submit(self, loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, None]) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task = loop.create_task(coro)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            future = asyncio.run_coroutine_threadsafe(coro, loop)
            self._futures.add(future)
            future.add_done_callback(self._futures.discard)


__all__ = ["HttpCommandChannel", "AckCallback", "DEFAULT_PREVIEW_PATH"]
