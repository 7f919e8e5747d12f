"""Implementation of the 'version' and 'semver' commands.

Both are read-only: 'version' prints the current version derived from tags,
'semver' prints the bump level implied by the commits since that version.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from tagflow.core.commits import CommitFilter, detect_bump
from tagflow.core.version import BumpType, Version, latest_tag_version, parse_version

if TYPE_CHECKING:
    from tagflow.config.models import TagflowConfig
    from tagflow.vcs.git import GitRepository, Tag

logger = logging.getLogger(__name__)


def current_version(tags: list[Tag], from_tag: str | None) -> Version:
    """Version named by ``from_tag``, else the newest version tag, else 0.0.0."""
    if from_tag is not None:
        return parse_version(from_tag, source="--from-tag")
    return latest_tag_version(tags) or Version(0, 0, 0)


def commits_bump(
    repo: GitRepository,
    config: TagflowConfig,
    tags: list[Tag],
    from_tag: str | None,
) -> BumpType:
    """Bump level of the commits after ``from_tag`` (or the newest matching tag)."""
    commit_filter = CommitFilter(config.ignore_patterns)
    since = from_tag if from_tag is not None else (tags[0].name if tags else None)
    commits = repo.get_commits(since=since)
    bump = detect_bump(commits, commit_filter)
    logger.debug("%d commits since %s imply a %s bump", len(commits), since or "the root", bump)
    return bump


def run_version(repo: GitRepository, config: TagflowConfig, from_tag: str | None) -> None:
    """Print the current version."""
    tags = repo.get_tags(config.tag_pattern) if from_tag is None else []
    click.echo(str(current_version(tags, from_tag)))


def run_semver(repo: GitRepository, config: TagflowConfig, from_tag: str | None) -> None:
    """Print the next bump level (major, minor or patch)."""
    tags = repo.get_tags(config.tag_pattern) if from_tag is None else []
    click.echo(str(commits_bump(repo, config, tags, from_tag)))
