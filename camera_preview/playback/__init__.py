"""Playback side of the preview: decoding, pacing and frame presentation."""

from .decoder import H264Decoder
from .player import FrameDecoder, PreviewPlayer
from .surface import FrameCacheSurface

__all__ = [
    'H264Decoder',
    'FrameDecoder',
    'PreviewPlayer',
    'FrameCacheSurface',
]
