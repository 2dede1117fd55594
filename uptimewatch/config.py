"""Configuration loader with type-safe dataclasses."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import yaml


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


# Minimum interval between ticks in seconds.
MIN_MONITOR_INTERVAL = 1.0

# Defaults for the probe round-trip budget and the report cadence.
DEFAULT_TIMEOUT = 0.5
DEFAULT_INTERVAL = 15.0


@dataclass(frozen=True)
class Endpoint:
    """A single HTTP endpoint to probe.

    The URL scheme is deliberately not checked here: an endpoint with an
    unsupported scheme is still loaded and reported as a diagnostic when
    probed.
    """

    name: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    method: str = "GET"
    body: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("Endpoint name cannot be empty")
        if not self.url:
            raise ConfigError(f"URL cannot be empty for '{self.name}'")
        if not isinstance(self.headers, Mapping):
            raise ConfigError(f"Headers must be a mapping for '{self.name}'")
        for key, value in self.headers.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ConfigError(f"Header names and values must be strings for '{self.name}'")
        # Read-only copy, so the endpoint stays hashable and unchanged.
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        if not isinstance(self.method, str) or not self.method:
            raise ConfigError(f"Method must be a non-empty string for '{self.name}'")
        if self.body is not None and not isinstance(self.body, str):
            raise ConfigError(f"Body must be a string for '{self.name}'")


@dataclass(frozen=True)
class MonitorConfig:
    """Configuration for the probing loop."""

    interval: float = DEFAULT_INTERVAL  # seconds between ticks
    timeout: float = DEFAULT_TIMEOUT  # seconds allowed for a single probe

    def __post_init__(self) -> None:
        if self.interval < MIN_MONITOR_INTERVAL:
            raise ConfigError(
                f"Monitor interval must be at least {MIN_MONITOR_INTERVAL} seconds (got {self.interval})"
            )
        if self.timeout <= 0:
            raise ConfigError(f"Probe timeout must be positive (got {self.timeout})")
        if self.timeout > self.interval:
            raise ConfigError(
                f"Probe timeout ({self.timeout}s) cannot exceed the monitor interval ({self.interval}s)"
            )


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    endpoints: list[Endpoint]
    monitor: MonitorConfig = field(default_factory=MonitorConfig)

    def __post_init__(self) -> None:
        if not self.endpoints:
            raise ConfigError("At least one endpoint must be configured")


def _parse_endpoint(data: dict, index: int) -> Endpoint:
    """Parse a single endpoint entry."""
    if not isinstance(data, dict):
        raise ConfigError(f"Endpoint entry {index} must be a dictionary")

    name = data.get("name")
    url = data.get("url")

    if name is None:
        raise ConfigError(f"Endpoint entry {index} is missing 'name' field")
    if url is None:
        raise ConfigError(f"Endpoint entry {index} is missing 'url' field")

    headers = data.get("headers")
    if headers is None:
        headers = {}
    elif not isinstance(headers, dict):
        raise ConfigError(f"Endpoint entry {index} 'headers' must be a dictionary")

    body = data.get("body")

    return Endpoint(
        name=str(name),
        url=str(url),
        headers={str(key): str(value) for key, value in headers.items()},
        method=str(data.get("method") or "GET"),
        body=str(body) if body is not None else None,
    )


def _parse_monitor_config(data: dict | None) -> MonitorConfig:
    """Parse monitor configuration section."""
    if data is None:
        return MonitorConfig()
    if not isinstance(data, dict):
        raise ConfigError("'monitor' section must be a dictionary")

    try:
        return MonitorConfig(
            interval=float(data.get("interval", DEFAULT_INTERVAL)),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid monitor setting: {e}")


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to configuration.

    Supported overrides:
    - UPTIMEWATCH_INTERVAL: Override monitor.interval
    - UPTIMEWATCH_TIMEOUT: Override monitor.timeout
    """
    if config_data.get("monitor") is None:
        config_data["monitor"] = {}
    if not isinstance(config_data["monitor"], dict):
        return config_data

    interval = os.environ.get("UPTIMEWATCH_INTERVAL")
    if interval is not None:
        config_data["monitor"]["interval"] = interval

    timeout = os.environ.get("UPTIMEWATCH_TIMEOUT")
    if timeout is not None:
        config_data["monitor"]["timeout"] = timeout

    return config_data


def load_config(config_path: str) -> Config:
    """Load and validate configuration from a YAML file.

    The file is either a plain list of endpoints or a dictionary with an
    ``endpoints`` list and an optional ``monitor`` section.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file cannot be read or configuration is invalid.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    if isinstance(data, list):
        data = {"endpoints": data}
    elif not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML list or dictionary")

    data = _apply_env_overrides(data)

    endpoints_data = data.get("endpoints")
    if endpoints_data is None:
        raise ConfigError("Configuration must contain an 'endpoints' section")
    if not isinstance(endpoints_data, list):
        raise ConfigError("'endpoints' must be a list")

    endpoints = [_parse_endpoint(entry, i) for i, entry in enumerate(endpoints_data)]

    return Config(
        endpoints=endpoints,
        monitor=_parse_monitor_config(data.get("monitor")),
    )
