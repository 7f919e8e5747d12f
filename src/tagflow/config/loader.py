"""Configuration discovery and merging.

Sources, lowest precedence first:

1. ``~/.config/tagflow.yml`` (global)
2. ``./tagflow.yml`` (local, overlays the global file field by field)
3. environment variables (``TAGFLOW_*``, ``GH_RELEASE_TOKEN``)
4. CLI flags

An explicit ``--config`` path replaces steps 1 and 2.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tagflow.config.models import TagflowConfig
from tagflow.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tagflow.yml"

TRUTHY = {"1", "true", "yes"}


def global_config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    home = env.get("HOME")
    base = Path(home) if home else Path()
    return base / ".config" / CONFIG_FILENAME


def read_config_file(path: Path) -> dict[str, Any]:
    """Load one YAML config file as a plain mapping.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid YAML or not a mapping
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in config file: {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping")
    return data


def merge_config_data(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay ``overlay`` onto ``base``.

    Nested mappings merge key by key and ``None`` values in ``overlay`` never
    replace anything.
    """
    merged = dict(base)
    for key, value in overlay.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = merge_config_data(current if isinstance(current, Mapping) else {}, value)
        else:
            merged[key] = value
    return merged


def load_file_config(
    config_path: Path | None = None,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Raw configuration from files, before env and flag overrides."""
    if config_path is not None:
        return read_config_file(config_path)

    data: dict[str, Any] = {}
    for path in (global_config_path(env), (cwd or Path.cwd()) / CONFIG_FILENAME):
        if path.is_file():
            logger.debug("Reading config file %s", path)
            data = merge_config_data(data, read_config_file(path))
    return data


def env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Configuration values supplied through environment variables."""
    github: dict[str, Any] = {
        "token": env.get("TAGFLOW_TOKEN") or env.get("GH_RELEASE_TOKEN"),
        "owner": env.get("TAGFLOW_OWNER"),
        "repo": env.get("TAGFLOW_REPO"),
        "api_url": env.get("TAGFLOW_GITHUB_API_BASE"),
    }
    data: dict[str, Any] = {
        "tag_pattern": env.get("TAGFLOW_TAG_PATTERN"),
        "github": github,
    }

    template = env.get("TAGFLOW_CHANGELOG_TEMPLATE")
    if template is not None:
        data["changelog"] = {"template": template}

    raw_ignore = env.get("TAGFLOW_IGNORE_PATTERNS")
    if raw_ignore is not None:
        data["ignore_patterns"] = [p.strip() for p in raw_ignore.split(";") if p.strip()]

    raw_verbose = env.get("TAGFLOW_VERBOSE")
    if raw_verbose is not None:
        data["verbose"] = raw_verbose.strip().lower() in TRUTHY

    return data


def load_config(
    config_path: Path | None = None,
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> TagflowConfig:
    """Build the effective configuration.

    Args:
        config_path: Explicit config file; disables global/local discovery
        cwd: Directory searched for the local config file
        env: Environment mapping (defaults to ``os.environ``)
        overrides: Values from CLI flags, same shape as the config file

    Raises:
        ConfigNotFoundError: If ``config_path`` does not exist
        ConfigValidationError: If any source holds invalid values
    """
    env = os.environ if env is None else env

    data = load_file_config(config_path, cwd=cwd, env=env)
    data = merge_config_data(data, env_overrides(env))
    if overrides:
        data = merge_config_data(data, overrides)

    try:
        return TagflowConfig.model_validate(data)
    except ValidationError as e:
        source = str(config_path) if config_path else "configuration"
        raise ConfigValidationError(f"Invalid {source}: {e}") from e
