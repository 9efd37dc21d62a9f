"""
Service configuration.

Settings come from environment variables so the same build runs locally
and behind a process manager.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from presence_router.core.exceptions import ConfigError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_OUTBOUND_BUFFER = 256

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


@dataclass
class Settings:
    """Runtime settings for the presence service."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    reload: bool = False
    outbound_buffer: int = DEFAULT_OUTBOUND_BUFFER

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Raises:
            ConfigError: If a value cannot be parsed
        """
        env = os.environ if environ is None else environ

        raw_port = env.get("PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {raw_port!r}") from None
        if not 0 < port < 65536:
            raise ConfigError(f"PORT out of range: {port}")

        log_level = env.get("PRESENCE_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Unknown log level: {log_level!r}")

        raw_buffer = env.get("PRESENCE_OUTBOUND_BUFFER", str(DEFAULT_OUTBOUND_BUFFER))
        try:
            outbound_buffer = int(raw_buffer)
        except ValueError:
            raise ConfigError(f"PRESENCE_OUTBOUND_BUFFER must be an integer, got {raw_buffer!r}") from None
        if outbound_buffer < 1:
            raise ConfigError(f"PRESENCE_OUTBOUND_BUFFER must be positive, got {outbound_buffer}")

        origins = [o.strip() for o in env.get("PRESENCE_CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            host=env.get("PRESENCE_HOST", DEFAULT_HOST),
            port=port,
            log_level=log_level,
            cors_origins=origins or ["*"],
            reload=_parse_bool("PRESENCE_RELOAD", env.get("PRESENCE_RELOAD", "false")),
            outbound_buffer=outbound_buffer,
        )
