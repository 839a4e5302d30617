"""Synchronized preview of clip playlists streamed from a remote camera."""

from __future__ import annotations

from importlib import metadata

from .config import PreviewConfig
from .preview import Clip, PreviewListener, PreviewOrchestrator, Timeline

try:
    __version__ = metadata.version("camera-preview")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "PreviewConfig",
    "Clip",
    "PreviewListener",
    "PreviewOrchestrator",
    "Timeline",
]
