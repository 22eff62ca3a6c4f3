"""Immutable per-process server configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from config import (
    HOST,
    LOG_FORMAT,
    OPEN_BROWSER,
    PORT,
    REQUEST_QUEUE_SIZE,
    ROOT_DIR,
    WORKER_COUNT,
)

LOG_FORMATS = ("plain", "json")


class ConfigError(ValueError):
    """Raised when startup parameters cannot produce a usable config."""


@dataclass(frozen=True, slots=True)
class ServerConfig:
    root_directory: Path
    listen_port: int = PORT
    host: str = HOST
    worker_count: int = WORKER_COUNT
    request_queue_size: int = REQUEST_QUEUE_SIZE
    log_format: str = LOG_FORMAT
    open_browser: bool = OPEN_BROWSER

    @classmethod
    def from_args(
        cls,
        root_directory: str | Path = ROOT_DIR,
        listen_port: int = PORT,
        **options: object,
    ) -> "ServerConfig":
        """Build a config with a canonical root, refusing roots that do not exist."""
        try:
            root = Path(root_directory).expanduser().resolve()
        except (OSError, RuntimeError, ValueError) as exc:
            raise ConfigError(f"Invalid directory: {root_directory}") from exc

        if not root.exists():
            raise ConfigError(f"Directory does not exist: {root}")
        if not root.is_dir():
            raise ConfigError(f"Not a directory: {root}")
        if not 0 <= listen_port <= 65_535:
            raise ConfigError(f"Port out of range: {listen_port}")

        log_format = options.get("log_format", LOG_FORMAT)
        if log_format not in LOG_FORMATS:
            raise ConfigError(f"Unsupported log format: {log_format}")

        return cls(root_directory=root, listen_port=listen_port, **options)  # type: ignore[arg-type]
