"""Configuration loading for HAProxy Monitor."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

import yaml

from .models import Target
from .session import DEFAULT_BACKOFF, DEFAULT_CONNECT_DELAY
from .view import PANEL_WIDTH

logger = logging.getLogger(__name__)

CONFIG_NAMES = ("haproxy-monitor.yaml", "haproxy-monitor.conf")


class ConfigError(Exception):
    """Raised when the target list cannot be read or is malformed."""


@dataclass(frozen=True)
class RelayConfig:
    listen: str = ":8081"
    poll_interval: float = 1.0


@dataclass(frozen=True)
class MonitorConfig:
    targets: Tuple[Target, ...]
    backoff: float = DEFAULT_BACKOFF
    connect_delay: float = DEFAULT_CONNECT_DELAY
    panel_width: int = PANEL_WIDTH
    log_file: str = "monitor.log"
    log_level: str = "INFO"
    relay: RelayConfig = field(default_factory=RelayConfig)
    source: Optional[str] = None


def default_config_paths() -> list[Path]:
    """Config locations searched when none is given: working directory, then home."""
    paths = [Path(name) for name in CONFIG_NAMES]
    paths.extend(Path.home() / f".{name}" for name in CONFIG_NAMES)
    return paths


def find_config_file(candidates: Optional[Sequence[Path]] = None) -> Path:
    """Return the first existing config file."""
    paths = list(candidates) if candidates is not None else default_config_paths()
    for path in paths:
        if path.exists():
            return path
    raise ConfigError(f"couldn't find any of {[str(p) for p in paths]}")


def validate_address(address: str) -> str:
    """Check that an address is a unix socket path or host:port."""
    if "/" in address:
        return address
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigError(f"bad address {address!r}, expected host:port or a socket path")
    return address


def parse_targets_text(text: str) -> list[Target]:
    """Parse the plain format: one ``name address`` pair per line."""
    targets = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = line.split(" ")
        if len(parts) != 2:
            raise ConfigError(f"bad config entry {parts}")
        targets.append(Target(name=parts[0], address=validate_address(parts[1])))
    return targets


def _parse_targets_list(entries) -> list[Target]:
    if not isinstance(entries, list):
        raise ConfigError("'targets' must be a list")
    targets = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name") or not entry.get("address"):
            raise ConfigError(f"bad target entry {entry!r}, expected name and address")
        targets.append(Target(name=str(entry["name"]), address=validate_address(str(entry["address"]))))
    return targets


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def config_from_dict(data: dict, source: Optional[str] = None) -> MonitorConfig:
    """Build a MonitorConfig from parsed YAML."""
    targets = _parse_targets_list(data.get("targets") or [])
    monitor = _section(data, "monitor")
    logging_config = _section(data, "logging")
    relay = _section(data, "relay")

    try:
        return MonitorConfig(
            targets=tuple(targets),
            backoff=float(monitor.get("backoff_seconds", DEFAULT_BACKOFF)),
            connect_delay=float(monitor.get("connect_delay_seconds", DEFAULT_CONNECT_DELAY)),
            panel_width=int(monitor.get("panel_width", PANEL_WIDTH)),
            log_file=str(logging_config.get("file", "monitor.log")),
            log_level=str(logging_config.get("level", "INFO")).upper(),
            relay=RelayConfig(
                listen=str(relay.get("listen", ":8081")),
                poll_interval=float(relay.get("poll_interval_seconds", 1.0)),
            ),
            source=source,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"bad config value: {e}") from e


def load_config(config_path: Optional[str] = None, require_targets: bool = True) -> MonitorConfig:
    """
    Load configuration from a YAML or plain target list file.

    Args:
        config_path: Explicit file; the default locations are searched if None
        require_targets: Fail when the file lists no targets

    Raises:
        ConfigError: If no file is found, it can't be read, or it is malformed
    """
    path = Path(config_path) if config_path else find_config_file()

    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigError(f"can't read {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        data = None

    if isinstance(data, dict):
        config = config_from_dict(data, source=str(path))
    else:
        config = MonitorConfig(targets=tuple(parse_targets_text(text)), source=str(path))

    if require_targets and not config.targets:
        raise ConfigError(f"no targets configured in {path}")

    logger.info(f"Loaded {len(config.targets)} targets from {path}")
    return config
