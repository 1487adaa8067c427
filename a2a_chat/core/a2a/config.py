"""
Configuration for the A2A client and relay.

Defaults are module constants; ``from_env`` overrides them from
``A2A_CHAT_*`` environment variables.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_RELAY_HOST = "localhost"
DEFAULT_RELAY_PORT = 3001
DEFAULT_RELAY_URL = f"http://{DEFAULT_RELAY_HOST}:{DEFAULT_RELAY_PORT}/api/proxy"
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_RELAY_TIMEOUT = 300.0  # seconds, per upstream call
DEFAULT_RETRY_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 5.0  # seconds

ENV_PREFIX = "A2A_CHAT_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = _get(env, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}")


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = _get(env, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")


def _parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = _get(env, name)
    if value is None:
        return default
    if value.lower() in _TRUE_VALUES:
        return True
    if value.lower() in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {value!r}")


@dataclass
class ClientConfig:
    """Settings for ``A2AClient``. An empty ``relay_url`` means direct mode."""

    relay_url: Optional[str] = DEFAULT_RELAY_URL
    timeout: float = DEFAULT_TIMEOUT
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    verify_ssl: bool = True

    def __post_init__(self):
        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must not be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'ClientConfig':
        """Build the configuration from environment variables."""
        env = os.environ if env is None else env

        relay_url = env.get(ENV_PREFIX + "RELAY_URL")
        if relay_url is None:
            relay_url = DEFAULT_RELAY_URL

        return cls(
            relay_url=relay_url.strip() or None,
            timeout=_parse_float(env, "TIMEOUT", DEFAULT_TIMEOUT),
            retry_attempts=_parse_int(env, "RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS),
            retry_delay=_parse_float(env, "RETRY_DELAY", DEFAULT_RETRY_DELAY),
            verify_ssl=_parse_bool(env, "VERIFY_SSL", True)
        )


@dataclass
class RelayConfig:
    """Settings for ``RelayServer``."""

    host: str = DEFAULT_RELAY_HOST
    port: int = DEFAULT_RELAY_PORT
    timeout: float = DEFAULT_RELAY_TIMEOUT
    enable_cors: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'RelayConfig':
        """Build the configuration from environment variables."""
        env = os.environ if env is None else env

        return cls(
            host=_get(env, "RELAY_HOST") or DEFAULT_RELAY_HOST,
            port=_parse_int(env, "RELAY_PORT", DEFAULT_RELAY_PORT),
            timeout=_parse_float(env, "RELAY_TIMEOUT", DEFAULT_RELAY_TIMEOUT),
            enable_cors=_parse_bool(env, "RELAY_CORS", True)
        )
