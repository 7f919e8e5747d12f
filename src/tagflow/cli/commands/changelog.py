"""Implementation of the 'changelog' command.

Prepends a section for unreleased commits to the changelog, or regenerates
the whole document from tags with ``--rebuild``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from tagflow.core.changelog import ChangelogComposer, check_changelog_options
from tagflow.core.commits import CommitFilter
from tagflow.exceptions import ConfigError, ConflictingOptionsError, TagflowError

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from tagflow.config.models import TagflowConfig
    from tagflow.vcs.git import GitRepository

logger = logging.getLogger(__name__)


def check_options(
    *,
    target: str | None,
    rebuild: bool,
    dry_run: bool,
    commit: bool,
    message: str | None,
) -> None:
    check_changelog_options(rebuild=rebuild, target=target)
    if commit and dry_run:
        raise ConflictingOptionsError("--commit cannot be combined with --dry-run")
    if message is not None and not commit:
        raise ConflictingOptionsError("--message requires --commit")


def run_changelog(
    repo: GitRepository,
    config: TagflowConfig,
    project_path: Path,
    target: str | None,
    rebuild: bool,
    dry_run: bool,
    commit: bool,
    message: str | None,
    console: Console,
) -> None:
    """Run the changelog command.

    Args:
        repo: Git repository of the project
        config: Effective configuration
        project_path: Directory the changelog path is relative to
        target: major/minor/patch or an explicit version for the new section
        rebuild: Regenerate the document from all tags
        dry_run: Print the document instead of writing it
        commit: Commit the changelog if it is the only changed file
        message: Commit message override
        console: Console for standard output
    """
    check_options(target=target, rebuild=rebuild, dry_run=dry_run, commit=commit, message=message)

    commit_filter = CommitFilter(config.ignore_patterns)
    tags = repo.get_tags(config.tag_pattern)
    composer = ChangelogComposer(repo, tags, commit_filter, config.changelog.template)

    changelog_path = project_path / config.changelog.path

    if rebuild:
        output = composer.compose_rebuild()
    else:
        existing = _read_existing(changelog_path)
        update = composer.compose_next(existing, target)
        if not update.changed:
            logger.info("%s not updated: %s", changelog_path.name, update.skipped_reason)
            return
        output = update.content

    if dry_run:
        click.echo(output)
        return

    changelog_path.write_text(output, encoding="utf-8")
    console.print(f"  [green]✓[/] Updated {config.changelog.path}")

    if commit:
        _commit_changelog(repo, changelog_path, message or config.changelog.commit_message, console)


def _read_existing(path: Path) -> str:
    if not path.is_file():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise TagflowError(f"Cannot read {path}: {e}") from e


def _commit_changelog(repo: GitRepository, changelog_path: Path, message: str, console: Console) -> None:
    """Commit the changelog only when it is the one changed file in the tree."""
    try:
        relative = changelog_path.resolve().relative_to(repo.path.resolve()).as_posix()
    except ValueError as e:
        raise ConfigError(f"Changelog path {changelog_path} is outside the repository {repo.path}") from e
    changed = repo.changed_files()

    if not changed:
        logger.info("Skipping auto-commit: %s is unchanged", relative)
        return
    if changed != [relative]:
        logger.warning("Skipping auto-commit: files changed are %s", ", ".join(changed))
        return

    repo.commit_files([changelog_path], message)
    console.print(f"  [green]✓[/] Committed {relative}")
