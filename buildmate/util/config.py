#!/usr/bin/env python3
"""Configuration loading for buildmate.

Precedence, lowest to highest: built-in defaults, ``buildmate.toml`` in the
data directory, ``buildmate.toml`` in the working directory, environment
variables.
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

from typeguard import typechecked


logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "buildmate.toml"
DISPLAY_MODES = ("rich", "ascii", "none")


def _default_data_dir() -> Path:
    return Path.home() / ".buildmate"


@typechecked
@dataclass
class BuildMateConfig:
    """Type-safe runtime configuration"""

    data_dir: Path = field(default_factory=_default_data_dir)
    compiler: str = "cargo"
    slow_build_seconds: float = 30.0
    many_warnings_threshold: int = 20
    large_error_threshold: int = 10
    display: str = "rich"
    history_limit: int = 1000
    metrics_limit: int = 10000
    timeout: Optional[float] = None  # None disables the build watchdog

    def __post_init__(self):
        if self.display not in DISPLAY_MODES:
            raise ValueError(
                f"display must be one of {', '.join(DISPLAY_MODES)}, got {self.display!r}"
            )
        for name in (
            "many_warnings_threshold",
            "large_error_threshold",
            "history_limit",
            "metrics_limit",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 when set")


def _coerce(name: str, value: Any) -> Any:
    """Convert a TOML or environment value to the type of config field *name*."""
    try:
        if name == "data_dir":
            return Path(os.path.expanduser(str(value)))
        if name in ("slow_build_seconds", "timeout"):
            return float(value)
        if name in (
            "many_warnings_threshold",
            "large_error_threshold",
            "history_limit",
            "metrics_limit",
        ):
            return int(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {name}: {value!r}") from e


def _read_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e
    known = {f.name for f in fields(BuildMateConfig)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key '{key}' in {path}")
            continue
        values[key] = _coerce(key, value)
    return values


_ENV_VARS = {
    "BUILDMATE_HOME": "data_dir",
    "CARGO_BIN_PATH": "compiler",
    "BUILDMATE_DISPLAY": "display",
    "BUILDMATE_TIMEOUT": "timeout",
}


def load_config(
    cwd: Optional[Path] = None, env: Optional[dict[str, str]] = None
) -> BuildMateConfig:
    """Build the effective configuration for one invocation."""
    env = dict(os.environ) if env is None else env
    cwd = cwd or Path.cwd()

    values: dict[str, Any] = {}
    if "BUILDMATE_HOME" in env:
        values["data_dir"] = _coerce("data_dir", env["BUILDMATE_HOME"])
    data_dir: Path = values.get("data_dir", _default_data_dir())

    for candidate in (data_dir / CONFIG_FILE_NAME, cwd / CONFIG_FILE_NAME):
        if candidate.is_file():
            logger.debug(f"Loading config from {candidate}")
            values.update(_read_toml(candidate))

    for var, name in _ENV_VARS.items():
        if env.get(var):
            values[name] = _coerce(name, env[var])

    return BuildMateConfig(**values)


def with_overrides(config: BuildMateConfig, **overrides: Any) -> BuildMateConfig:
    """Return a copy of *config* with non-None command line overrides applied."""
    applied = {k: v for k, v in overrides.items() if v is not None}
    return replace(config, **applied) if applied else config
