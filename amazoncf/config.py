"""TOML-based driver configuration.

Loads ~/.amazoncf/defaults.toml (global) and amazoncf.toml (project),
merges them, and layers environment variables and command-line values
on top to produce the options a driver is configured from.

Example amazoncf.toml:

    [driver]
    cloudformation-url = "https://s3.amazonaws.com/bucket/docker-host.json"
    cloudformation-keypairname = "ops"
    cloudformation-keypath = "~/.ssh/ops.pem"
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from .exceptions import ConfigurationError
from .flags import Flag, Options

type RawConfig = dict[str, Any]

CONFIG_DIR = Path.home() / ".amazoncf"
GLOBAL_CONFIG_PATH = CONFIG_DIR / "defaults.toml"
PROJECT_CONFIG_NAME = "amazoncf.toml"
STORAGE_PATH_ENV = "AMAZONCF_STORAGE_PATH"


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("driver", {})
    return merged


def default_storage_path(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    raw = env.get(STORAGE_PATH_ENV)
    return Path(raw).expanduser() if raw else CONFIG_DIR


def _environment_values(flags: Sequence[Flag], environ: Mapping[str, str]) -> dict[str, object]:
    return {
        flag.name: environ[flag.env_var]
        for flag in flags
        if flag.env_var and flag.env_var in environ
    }


def build_options(
    flags: Sequence[Flag],
    *,
    cli: Mapping[str, object] | None = None,
    config: RawConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> Options:
    """Resolve flag values: cli > environment > config file > flag default.

    Command-line entries whose value is None count as not given.

    Raises:
        ConfigurationError: If the [driver] table names an unknown flag.
    """
    names = {flag.name for flag in flags}
    file_values = dict((config or {}).get("driver", {}))

    unknown = sorted(set(file_values) - names)
    if unknown:
        raise ConfigurationError(
            f"Unknown driver option(s) in config: {', '.join(unknown)}. "
            f"Valid: {', '.join(sorted(names))}"
        )

    values: dict[str, object] = {flag.name: flag.default for flag in flags}
    values.update(file_values)
    values.update(_environment_values(flags, os.environ if environ is None else environ))
    values.update({k: v for k, v in (cli or {}).items() if v is not None})
    return Options(values)
