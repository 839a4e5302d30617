"""
Packet framing for the camera preview stream.

Every packet is a fixed header followed by its payload::

    >I  payload length in bytes
    >I  presentation timestamp (ms, inside the recorded file)
    >B  flags (FIRST_FRAME, END_OF_STREAM)

An END_OF_STREAM packet carries no payload.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

HEADER = struct.Struct(">IIB")
HEADER_SIZE = HEADER.size

FLAG_FIRST_FRAME = 0x01
FLAG_END_OF_STREAM = 0x02

MAX_PAYLOAD = 8 * 1024 * 1024


class FramingError(ValueError):
    """Malformed packet on the preview stream."""


@dataclass(frozen=True, slots=True)
class StreamPacket:
    pts_ms: int
    payload: bytes
    flags: int = 0

    @property
    def is_first_frame(self) -> bool:
        return bool(self.flags & FLAG_FIRST_FRAME)

    @property
    def is_end_of_stream(self) -> bool:
        return bool(self.flags & FLAG_END_OF_STREAM)

    def __len__(self) -> int:
        return len(self.payload)


def encode_packet(packet: StreamPacket) -> bytes:
    return HEADER.pack(len(packet.payload), packet.pts_ms, packet.flags) + packet.payload


def decode_header(header: bytes) -> tuple[int, int, int]:
    """Return ``(length, pts_ms, flags)``; raises FramingError on bad input."""
    if len(header) != HEADER_SIZE:
        raise FramingError(f"Header must be {HEADER_SIZE} bytes, got {len(header)}")
    length, pts_ms, flags = HEADER.unpack(header)
    if length > MAX_PAYLOAD:
        raise FramingError(f"Payload of {length} bytes exceeds limit of {MAX_PAYLOAD}")
    if flags & FLAG_END_OF_STREAM and length:
        raise FramingError("End-of-stream packet must not carry a payload")
    return length, pts_ms, flags


class PacketParser:
    """Incremental parser for a byte stream of packets."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> list[StreamPacket]:
        self._buffer.extend(data)
        packets: list[StreamPacket] = []
        while len(self._buffer) >= HEADER_SIZE:
            length, pts_ms, flags = decode_header(bytes(self._buffer[:HEADER_SIZE]))
            end = HEADER_SIZE + length
            if len(self._buffer) < end:
                break
            packets.append(StreamPacket(pts_ms, bytes(self._buffer[HEADER_SIZE:end]), flags))
            del self._buffer[:end]
        return packets

    def reset(self) -> None:
        self._buffer.clear()


__all__ = [
    "HEADER_SIZE",
    "FLAG_FIRST_FRAME",
    "FLAG_END_OF_STREAM",
    "MAX_PAYLOAD",
    "FramingError",
    "StreamPacket",
    "encode_packet",
    "decode_header",
    "PacketParser",
]
