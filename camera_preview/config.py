"""Typed configuration for the preview runtime."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from camera_preview.core.config_loader import ConfigLoader

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.txt"

# CLI attribute -> config key
_ARG_OVERRIDES = {
    "camera_host": "camera_host",
    "camera_port": "camera_port",
    "stream_port": "stream_port",
    "log_level": "log_level",
    "log_file": "log_file",
}


@dataclass(slots=True)
class PreviewConfig:
    """Typed configuration for a preview session."""

    # Camera command endpoint
    camera_host: str = "192.168.1.101"
    camera_port: int = 80
    preview_path: str = "/api/2/preview"
    # HTTP request limit; must expire before the command watchdog does
    request_timeout_secs: float = 3.0
    command_timeout_secs: float = 5.0

    # Local stream server
    stream_host: str = "0.0.0.0"
    stream_port: int = 0

    # Stream buffer (packets)
    buffer_capacity: int = 256
    buffer_low_watermark: int = 8
    buffer_ready_watermark: int = 32

    # Command protocol
    max_consecutive_failures: int = 3
    watchdog_interval_secs: float = 1.0
    diagnostics_history: int = 256

    volume_enabled: bool = True

    # Logging
    log_level: str = "info"
    log_file: str = ""

    def __post_init__(self) -> None:
        if self.buffer_capacity <= 0:
            raise ValueError("buffer_capacity must be positive")
        if not 0 < self.buffer_low_watermark <= self.buffer_ready_watermark <= self.buffer_capacity:
            raise ValueError(
                "watermarks must satisfy 0 < low <= ready <= capacity "
                f"(got low={self.buffer_low_watermark}, ready={self.buffer_ready_watermark}, "
                f"capacity={self.buffer_capacity})"
            )
        if self.command_timeout_secs <= 0:
            raise ValueError("command_timeout_secs must be positive")
        if not 0 < self.request_timeout_secs < self.command_timeout_secs:
            raise ValueError(
                "request_timeout_secs must be positive and below command_timeout_secs "
                f"(got request={self.request_timeout_secs}, command={self.command_timeout_secs})"
            )

    @property
    def camera_base_url(self) -> str:
        return f"http://{self.camera_host}:{self.camera_port}"

    @classmethod
    def defaults(cls) -> dict[str, Any]:
        return asdict(cls())

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PreviewConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in values.items() if key in known})

    @classmethod
    def load(cls, path: Optional[Path] = None, args: Any = None) -> "PreviewConfig":
        """Load ``config.txt`` on top of the defaults, then apply CLI overrides."""
        values = ConfigLoader.load(path or DEFAULT_CONFIG_PATH, defaults=cls.defaults())
        if args is not None:
            for attr, key in _ARG_OVERRIDES.items():
                value = getattr(args, attr, None)
                if value is not None:
                    values[key] = value
        return cls.from_mapping(values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["PreviewConfig", "DEFAULT_CONFIG_PATH"]
