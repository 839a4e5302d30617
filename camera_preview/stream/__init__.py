"""Preview stream: packet framing, bounded buffer and the TCP stream server."""

from .buffer import StreamBuffer
from .framing import FramingError, PacketParser, StreamPacket, encode_packet
from .server import PreviewStreamServer

__all__ = [
    'StreamBuffer',
    'FramingError',
    'PacketParser',
    'StreamPacket',
    'encode_packet',
    'PreviewStreamServer',
]
