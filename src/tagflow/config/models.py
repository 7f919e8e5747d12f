"""Pydantic models for tagflow configuration.

Configuration comes from YAML files (``~/.config/tagflow.yml`` overlaid by
``./tagflow.yml``), environment variables and CLI flags, in increasing order
of precedence. See :mod:`tagflow.config.loader` for how the sources merge.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TAG_PATTERN = r"^v\d+\.\d+\.\d+$"

DEFAULT_IGNORE_PATTERNS = [
    r"^.+: fixup$",
    r"^.+: wip$",
    r"^fixup: .+$",
    r"^wip: .+$",
    r"^fixup$",
    r"^wip$",
    r"^Merge .+$",
]

DEFAULT_API_URL = "https://api.github.com"


def _check_regex(value: str) -> str:
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"invalid regex pattern '{value}': {e}") from e
    return value


class ChangelogConfig(BaseModel):
    """Changelog output settings."""

    model_config = ConfigDict(extra="forbid")

    path: Path = Field(default=Path("CHANGELOG.md"))
    template: str | None = Field(
        default=None,
        description="Section template using $DATE, $VERSION and $COMMITS",
    )
    commit_message: str = "chore: Updated CHANGELOG.md."


class UpdateConfig(BaseModel):
    """Manifest update settings."""

    model_config = ConfigDict(extra="forbid")

    commit_message: str = "chore: Updated version."


class GitHubConfig(BaseModel):
    """GitHub releases settings."""

    model_config = ConfigDict(extra="forbid")

    token: str | None = None
    owner: str | None = None
    repo: str | None = None
    api_url: str = DEFAULT_API_URL
    timeout: float = Field(default=30.0, gt=0)


class TagflowConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    tag_pattern: str = DEFAULT_TAG_PATTERN
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    verbose: bool = False

    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    update: UpdateConfig = Field(default_factory=UpdateConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)

    @field_validator("tag_pattern")
    @classmethod
    def _validate_tag_pattern(cls, value: str) -> str:
        return _check_regex(value)

    @field_validator("ignore_patterns")
    @classmethod
    def _validate_ignore_patterns(cls, value: list[str]) -> list[str]:
        for pattern in value:
            _check_regex(pattern)
        return value
