"""Configuration management for tagflow."""

from __future__ import annotations

from tagflow.config.loader import load_config
from tagflow.config.models import (
    ChangelogConfig,
    GitHubConfig,
    TagflowConfig,
    UpdateConfig,
)

__all__ = [
    "ChangelogConfig",
    "GitHubConfig",
    "TagflowConfig",
    "UpdateConfig",
    "load_config",
]
