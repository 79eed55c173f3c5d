"""Configuration management for redom.

Defaults plus overrides from redom.toml, searched in the current directory
and its parents.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional
import logging
import tomllib

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "redom.toml"

# (section, key) -> RedomConfig field
_TOML_KEYS = {
    ("chrome", "host"): "host",
    ("chrome", "port"): "port",
    ("chrome", "minimize_window"): "minimize_window",
    ("chrome", "auto_reconnect"): "auto_reconnect",
    ("chrome", "reconnect_delay"): "reconnect_delay",
    ("timeouts", "command"): "command_timeout",
    ("timeouts", "page_load"): "page_load_timeout",
    ("render", "delay_ms"): "render_delay_ms",
}


def _type_problem(expected: type, value) -> Optional[str]:
    """Why `value` does not fit a field of type `expected`, or None."""
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) and expected is not bool:
        ok = False
    elif expected is float:
        ok = isinstance(value, (int, float))
    else:
        ok = isinstance(value, expected)

    if ok:
        return None
    return f"must be {expected.__name__}, got {type(value).__name__} {value!r}"


@dataclass
class RedomConfig:
    """Connection and render settings.

    Attributes:
        host: Chrome debugging host.
        port: Chrome debugging port.
        command_timeout: Seconds to wait for any CDP command reply.
        page_load_timeout: Seconds to wait for Page.loadEventFired.
        render_delay_ms: Settle delay after load, before DOM extraction.
        minimize_window: Minimize the managed window after connecting.
        auto_reconnect: Reconnect once when Chrome drops the connection.
        reconnect_delay: Seconds to wait before that reconnect.
    """

    host: str = "localhost"
    port: int = 9222
    command_timeout: float = 30.0
    page_load_timeout: float = 30.0
    render_delay_ms: int = 1000
    minimize_window: bool = True
    auto_reconnect: bool = True
    reconnect_delay: float = 1.0

    def validate(self) -> "RedomConfig":
        """Check value types and ranges.

        Returns:
            self, for chaining

        Raises:
            ValueError: If any value has the wrong type or is out of range
        """
        for f in fields(self):
            if problem := _type_problem(f.type, getattr(self, f.name)):
                raise ValueError(f"{f.name} {problem}")

        if not self.host:
            raise ValueError("host must not be empty")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")
        if self.command_timeout <= 0:
            raise ValueError(f"command_timeout must be positive, got {self.command_timeout}")
        if self.page_load_timeout <= 0:
            raise ValueError(f"page_load_timeout must be positive, got {self.page_load_timeout}")
        if self.render_delay_ms < 0:
            raise ValueError(f"render_delay_ms must not be negative, got {self.render_delay_ms}")
        if self.reconnect_delay < 0:
            raise ValueError(f"reconnect_delay must not be negative, got {self.reconnect_delay}")
        return self

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Find redom.toml in `start` (default: cwd) or its parents."""
    current = start or Path.cwd()

    for parent in [current] + list(current.parents):
        config_file = parent / CONFIG_FILENAME
        if config_file.exists():
            return config_file

    return None


def load_config(path: Optional[Path] = None) -> RedomConfig:
    """Load configuration, falling back to defaults.

    Args:
        path: Explicit config file. Searched for when omitted.

    Returns:
        Validated RedomConfig

    Raises:
        ValueError: If the file holds out-of-range values
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    if path is None:
        path = find_config_file()

    config = RedomConfig()
    if path is None or not path.exists():
        return config

    with open(path, "rb") as f:
        data = tomllib.load(f)

    field_types = {f.name: f.type for f in fields(RedomConfig)}

    for (section, key), attr in _TOML_KEYS.items():
        table = data.get(section, {})
        if not isinstance(table, dict):
            raise ValueError(f"[{section}] in {path} must be a table")

        value = table.get(key)
        if value is None:
            continue
        if problem := _type_problem(field_types[attr], value):
            raise ValueError(f"[{section}] {key} in {path} {problem}")
        setattr(config, attr, value)

    logger.debug(f"Loaded configuration from {path}")
    return config.validate()
