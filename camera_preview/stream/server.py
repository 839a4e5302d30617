"""
Preview stream server.

Listens for the camera's preview connection and feeds received packets into
the stream buffer. The socket is bound synchronously so ``start()`` can hand
the port to the caller at once; serving happens on the owning event loop.
"""

from __future__ import annotations

import asyncio
import functools
import socket
import threading
from typing import Any, Callable, Coroutine, Optional

from camera_preview.core.logging_utils import get_module_logger
from camera_preview.preview.interfaces import EndOfStreamHandler

from .buffer import StreamBuffer
from .framing import FramingError, PacketParser

_READ_SIZE = 64 * 1024
_PUT_RETRY_SECS = 0.5


class PreviewStreamServer:
    """Accepts one camera connection at a time and buffers its packets.

    End of stream is reported when the camera sends an END_OF_STREAM packet
    or closes the connection. A local ``stop()`` never reports it.
    """

    def __init__(
        self,
        buffer: StreamBuffer,
        host: str = "0.0.0.0",
        port: int = 0,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        read_size: int = _READ_SIZE,
    ) -> None:
        self.logger = get_module_logger("PreviewStreamServer")
        self._buffer = buffer
        self._host = host
        self._requested_port = port
        self._loop = loop
        self._read_size = read_size

        self._lock = threading.Lock()
        self._sock: Optional[socket.socket] = None
        self._server: Optional[asyncio.AbstractServer] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._generation = 0
        self._port = port
        self._eos_handler: Optional[EndOfStreamHandler] = None
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Public API

    @property
    def port(self) -> int:
        return self._port

    @property
    def connected(self) -> bool:
        return self._writer is not None

    def set_end_of_stream_handler(self, handler: Optional[EndOfStreamHandler]) -> None:
        self._eos_handler = handler

    def is_running(self) -> bool:
        return self._sock is not None

    def start(self) -> int:
        """Bind the listening socket (if needed) and return its port."""
        with self._lock:
            if self._sock is not None:
                return self._port

            loop = self._resolve_loop()
            sock = socket.create_server((self._host, self._requested_port))
            sock.setblocking(False)
            self._sock = sock
            self._port = sock.getsockname()[1]
            self._generation += 1
            generation = self._generation

        self._submit(loop, self._serve(sock, generation))
        self.logger.info("Preview stream server listening on %s:%d", self._host, self._port)
        return self._port

    def stop(self) -> None:
        """Close the listener and any camera connection, and flush the buffer."""
        with self._lock:
            sock, server, writer = self._sock, self._server, self._writer
            self._sock = self._server = self._writer = None
            self._generation += 1

        if server is not None:
            self._call_soon(server.close)
        elif sock is not None:
            sock.close()
        if writer is not None:
            self._call_soon(writer.close)

        if sock is not None:
            self.logger.info("Preview stream server stopped")
        self._buffer.clear()

    # ------------------------------------------------------------------
    # Serving

    async def _serve(self, sock: socket.socket, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
        try:
            server = await asyncio.start_server(
                functools.partial(self._handle_connection, generation),
                sock=sock,
            )
        except OSError as exc:
            self.logger.error("Could not serve preview stream: %s", exc)
            return

        with self._lock:
            stale = generation != self._generation
            if not stale:
                self._server = server
        if stale:
            server.close()

    async def _handle_connection(
        self,
        generation: int,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        peer = writer.get_extra_info("peername")
        with self._lock:
            accepted = generation == self._generation and self._writer is None
            if accepted:
                self._writer = writer
        if not accepted:
            self.logger.warning("Rejecting extra preview connection from %s", peer)
            writer.close()
            return

        self.logger.info("Camera connected from %s", peer)
        parser = PacketParser()
        end_of_stream = False
        try:
            while not end_of_stream:
                data = await reader.read(self._read_size)
                if not data:
                    end_of_stream = True
                    break
                for packet in parser.feed(data):
                    if packet.is_end_of_stream:
                        end_of_stream = True
                        break
                    if not await self._enqueue(packet, generation):
                        return
        except FramingError as exc:
            self.logger.warning("Malformed preview stream from %s: %s", peer, exc)
            end_of_stream = False
        except ConnectionError as exc:
            self.logger.warning("Preview connection from %s lost: %s", peer, exc)
            end_of_stream = False
        finally:
            with self._lock:
                current = generation == self._generation
                if self._writer is writer:
                    self._writer = None
            writer.close()

        if end_of_stream and current:
            self.logger.info("End of stream received")
            self._buffer.mark_end_of_stream()
            handler = self._eos_handler
            if handler is not None:
                handler()

    async def _enqueue(self, packet: Any, generation: int) -> bool:
        while True:
            if generation != self._generation:
                return False
            if await asyncio.to_thread(self._buffer.put, packet, _PUT_RETRY_SECS):
                return True

    # ------------------------------------------------------------------
    # Loop plumbing

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise RuntimeError("PreviewStreamServer needs an event loop") from exc
        return self._loop

    @staticmethod
    def _in_loop(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    def _submit(self, loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, None]) -> None:
        if self._in_loop(loop):
            task = loop.create_task(coro)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            asyncio.run_coroutine_threadsafe(coro, loop)

    def _call_soon(self, callback: Callable[[], Any]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            callback()
        elif self._in_loop(loop):
            loop.call_soon(callback)
        else:
            loop.call_soon_threadsafe(callback)


__all__ = ["PreviewStreamServer"]
