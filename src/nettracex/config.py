"""
Configuration management for NetTraceX.

Loads network and logging settings from environment variables or a .env file.
"""

import logging
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable

from nettracex.errors import configuration_error

# Try to load from .env file if python-dotenv is available
try:
    from dotenv import load_dotenv
    # Check common locations for .env
    env_locations = [
        Path.home() / ".nettracex" / ".env",
        Path.home() / ".config" / "nettracex" / ".env",
        Path.cwd() / ".env",
    ]
    for env_path in env_locations:
        if env_path.exists():
            load_dotenv(env_path)
            break
except ImportError:
    pass


ENV_PREFIX = "NETTRACEX_"

MAX_TIMEOUT = 300.0  # 5 minutes
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL", "FATAL")


def _env(name: str, default: Any, convert: Callable[[str], Any]) -> Any:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError as e:
        raise configuration_error(
            "INVALID_CONFIG",
            f"invalid value for {ENV_PREFIX + name}: {raw!r}",
            cause=e,
            variable=ENV_PREFIX + name,
        ) from e


def _duration(raw: str) -> float:
    """Parse '30', '30s', '500ms' or '2m' into seconds."""
    value = raw.lower()
    if value.endswith("ms"):
        return float(value[:-2]) / 1000.0
    if value.endswith("s"):
        return float(value[:-1])
    if value.endswith("m"):
        return float(value[:-1]) * 60.0
    return float(value)


def _csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class NetworkConfig:
    """Network operation settings, shared read-only by every operation."""

    timeout: float = 30.0          # dial timeout in seconds
    max_hops: int = 30
    packet_size: int = 64
    dns_servers: tuple[str, ...] = ()  # empty = system resolver
    user_agent: str = "NetTraceX/1.0"
    max_concurrency: int = 10
    retry_attempts: int = 3
    retry_delay: float = 1.0       # base delay in seconds

    @classmethod
    def from_env(cls) -> "NetworkConfig":
        """Load network configuration from environment variables."""
        defaults = cls()
        return cls(
            timeout=_env("NETWORK_TIMEOUT", defaults.timeout, _duration),
            max_hops=_env("NETWORK_MAX_HOPS", defaults.max_hops, int),
            packet_size=_env("NETWORK_PACKET_SIZE", defaults.packet_size, int),
            dns_servers=_env("NETWORK_DNS_SERVERS", defaults.dns_servers, _csv),
            user_agent=_env("NETWORK_USER_AGENT", defaults.user_agent, str),
            max_concurrency=_env("NETWORK_MAX_CONCURRENCY", defaults.max_concurrency, int),
            retry_attempts=_env("NETWORK_RETRY_ATTEMPTS", defaults.retry_attempts, int),
            retry_delay=_env("NETWORK_RETRY_DELAY", defaults.retry_delay, _duration),
        )

    def validate(self) -> None:
        if self.timeout <= 0:
            raise configuration_error("INVALID_CONFIG", "timeout must be positive", field="network.timeout")
        if self.timeout > MAX_TIMEOUT:
            raise configuration_error("INVALID_CONFIG", "timeout should not exceed 5 minutes", field="network.timeout")
        if not 1 <= self.max_hops <= 255:
            raise configuration_error("INVALID_CONFIG", "max_hops must be between 1 and 255", field="network.max_hops")
        if not 1 <= self.packet_size <= 65507:
            raise configuration_error("INVALID_CONFIG", "packet_size must be between 1 and 65507", field="network.packet_size")
        if self.max_concurrency < 1:
            raise configuration_error("INVALID_CONFIG", "max_concurrency must be at least 1", field="network.max_concurrency")
        if self.retry_attempts < 0:
            raise configuration_error("INVALID_CONFIG", "retry_attempts must be non-negative", field="network.retry_attempts")
        if self.retry_delay < 0:
            raise configuration_error("INVALID_CONFIG", "retry_delay must be non-negative", field="network.retry_delay")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    log_file: str | None = None
    max_size_mb: int = 100
    max_backups: int = 3

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Load logging configuration from environment variables."""
        defaults = cls()
        return cls(
            level=_env("LOGGING_LEVEL", defaults.level, str.upper),
            log_file=_env("LOGGING_FILE", defaults.log_file, str),
            max_size_mb=_env("LOGGING_MAX_SIZE", defaults.max_size_mb, int),
            max_backups=_env("LOGGING_MAX_BACKUPS", defaults.max_backups, int),
        )

    def validate(self) -> None:
        if self.level.upper() not in LOG_LEVELS:
            raise configuration_error("INVALID_CONFIG", f"unknown log level: {self.level}", field="logging.level")
        if self.max_size_mb <= 0:
            raise configuration_error("INVALID_CONFIG", "max_size must be positive", field="logging.max_size")
        if self.max_backups < 0:
            raise configuration_error("INVALID_CONFIG", "max_backups must be non-negative", field="logging.max_backups")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        config = cls(network=NetworkConfig.from_env(), logging=LoggingConfig.from_env())
        config.validate()
        return config

    def validate(self) -> None:
        self.network.validate()
        self.logging.validate()


# Global config instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
        logging.getLogger(__name__).debug("Loaded configuration from environment")
    return _config


def set_config(config: AppConfig | None) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
