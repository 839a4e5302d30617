"""Command transports for talking to the camera."""

from .http_channel import DEFAULT_PREVIEW_PATH, AckCallback, HttpCommandChannel

__all__ = ["HttpCommandChannel", "AckCallback", "DEFAULT_PREVIEW_PATH"]
