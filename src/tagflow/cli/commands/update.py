"""Implementation of the 'update' command.

The update command rewrites the version in the project manifest and can
optionally commit the change and tag the new commit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagflow.cli.commands.version import commits_bump
from tagflow.core.tags import derive_tag_name
from tagflow.core.version import parse_target
from tagflow.exceptions import ConflictingOptionsError
from tagflow.project import update_project_version

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from tagflow.config.models import TagflowConfig
    from tagflow.vcs.git import GitRepository


def check_update_options(*, commit: bool, message: str | None, tag: bool) -> None:
    if message is not None and not commit:
        raise ConflictingOptionsError("--message requires --commit")
    if tag and not commit:
        raise ConflictingOptionsError("--tag requires --commit")


def run_update(
    repo: GitRepository,
    config: TagflowConfig,
    project_path: Path,
    target: str | None,
    from_tag: str | None,
    commit: bool,
    message: str | None,
    tag: bool,
    console: Console,
) -> None:
    """Run the update command.

    Args:
        repo: Git repository of the project
        config: Effective configuration
        project_path: Directory holding the project manifest
        target: major/minor/patch or an explicit version; detected from
            commits when omitted
        from_tag: Tag to count commits from instead of the newest version tag
        commit: Commit the rewritten manifest
        message: Commit message override
        tag: Tag the new commit with the new version
        console: Console for standard output
    """
    tags = repo.get_tags(config.tag_pattern) if from_tag is None else []
    update_target = parse_target(target, commits_bump(repo, config, tags, from_tag))

    new_version, manifest_path = update_project_version(project_path, update_target)

    if commit:
        repo.commit_files([manifest_path], message or config.update.commit_message)
        console.print(f"  [green]✓[/] Committed {manifest_path.name}")

        if tag:
            tag_name = derive_tag_name(str(new_version), config.tag_pattern)
            repo.create_tag(tag_name)
            console.print(f"  [green]✓[/] Tagged [cyan]{tag_name}[/]")

    console.print(f"Updated version to {new_version}.", highlight=False)
