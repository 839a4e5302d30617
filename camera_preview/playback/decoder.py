"""H.264 access-unit decoder built on PyAV."""

from __future__ import annotations

import av
import numpy as np

from camera_preview.core.logging_utils import get_module_logger

logger = get_module_logger("H264Decoder")


class H264Decoder:
    """Decodes raw H.264 payloads into RGB frames.

    The codec context is recreated by ``reset()`` so a new clip segment does
    not inherit reference frames from the previous one.
    """

    def __init__(self, codec_name: str = "h264", pixel_format: str = "rgb24") -> None:
        self._codec_name = codec_name
        self._pixel_format = pixel_format
        self._codec = av.CodecContext.create(codec_name, "r")
        self._errors = 0

    @property
    def errors(self) -> int:
        return self._errors

    def decode(self, payload: bytes) -> list[np.ndarray]:
        frames: list[np.ndarray] = []
        try:
            for packet in self._codec.parse(payload):
                for frame in self._codec.decode(packet):
                    frames.append(frame.to_ndarray(format=self._pixel_format))
        except av.error.FFmpegError as exc:
            self._errors += 1
            logger.warning("Dropping undecodable payload (%d bytes): %s", len(payload), exc)
        return frames

    def reset(self) -> None:
        self._codec = av.CodecContext.create(self._codec_name, "r")


__all__ = ["H264Decoder"]
