"""Implementation of the 'release' command.

Publishes GitHub releases whose notes are derived from tag-bounded history.
By default only the newest tag is published; ``--rebuild`` reconciles the
full release list with every matching tag.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click
from rich.panel import Panel

from tagflow.core.commits import CommitFilter
from tagflow.core.history import partition_history, pending_window
from tagflow.core.release import (
    ActionKind,
    ReleaseCandidate,
    ReleaseReconciler,
    build_release_candidates,
    candidate_for_window,
    check_release_options,
)
from tagflow.core.version import latest_tag_version, parse_target, resolve_version
from tagflow.exceptions import ConfigError, NoTagsFoundError
from tagflow.github import GitHubReleaseClient, parse_github_repo_from_url
from tagflow.github.client import detect_owner_repo_from_files

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from tagflow.config.models import TagflowConfig
    from tagflow.core.release import ReleasePlan, ReleaseStore
    from tagflow.vcs.git import GitRepository

logger = logging.getLogger(__name__)


def build_candidates(
    repo: GitRepository,
    config: TagflowConfig,
    *,
    target: str | None,
    rebuild: bool,
    prerelease: bool,
) -> list[ReleaseCandidate]:
    """Desired releases: every tag (rebuild), an explicit target, or the newest tag.

    Raises:
        NoTagsFoundError: If no tag matches and no explicit target is given
    """
    commit_filter = CommitFilter(config.ignore_patterns)
    tags = repo.get_tags(config.tag_pattern)

    if target is not None:
        window = pending_window(repo, tags, commit_filter)
        version = resolve_version(latest_tag_version(tags), parse_target(target, window.bump))
        return [candidate_for_window(window, str(version), prerelease=prerelease)]

    if not tags:
        raise NoTagsFoundError(config.tag_pattern)

    if rebuild:
        return build_release_candidates(partition_history(repo, tags, commit_filter))

    # The newest window only needs the two newest tags
    return build_release_candidates(partition_history(repo, tags[:2], commit_filter)[-1:])


def resolve_owner_repo(config: TagflowConfig, repo: GitRepository, project_path: Path) -> tuple[str, str]:
    """Owner and repository from config, manifests or the origin remote.

    Raises:
        ConfigError: If none of the sources names a GitHub repository
    """
    if config.github.owner and config.github.repo:
        return config.github.owner, config.github.repo

    detected = detect_owner_repo_from_files(project_path)
    if detected is None:
        remote = repo.get_remote_url()
        detected = parse_github_repo_from_url(remote) if remote else None

    if detected is None:
        raise ConfigError(
            "Cannot determine GitHub owner/repo. Set TAGFLOW_OWNER and TAGFLOW_REPO, or use --owner/--repo."
        )
    return detected


def make_client(config: TagflowConfig) -> GitHubReleaseClient:
    if not config.github.token:
        raise ConfigError("Missing GitHub token. Set GH_RELEASE_TOKEN/TAGFLOW_TOKEN or pass --token.")
    return GitHubReleaseClient(
        config.github.token,
        api_url=config.github.api_url,
        timeout=config.github.timeout,
    )


def print_plan(plan: ReleasePlan, owner: str, repo: str, *, dry_run: bool, console: Console) -> None:
    prefix = "dry-run: would " if dry_run else ""
    lines = [f"{prefix}{action.describe()}" for action in plan.actions if action.kind is not ActionKind.SKIP]
    skipped = plan.of_kind(ActionKind.SKIP)
    if skipped:
        lines.append(f"{len(skipped)} release(s) already up to date")

    console.print(
        Panel(
            "\n".join(lines) or "Nothing to do",
            title=f"[yellow]Dry Run Preview[/] {owner}/{repo}" if dry_run else f"[green]Releases[/] {owner}/{repo}",
            border_style="yellow" if dry_run else "green",
        )
    )


def run_release(
    repo: GitRepository,
    config: TagflowConfig,
    project_path: Path,
    target: str | None,
    rebuild: bool,
    notes_only: bool,
    dry_run: bool,
    prerelease: bool,
    console: Console,
    store: ReleaseStore | None = None,
) -> ReleasePlan | None:
    """Run the release command.

    Args:
        repo: Git repository of the project
        config: Effective configuration (token/owner/repo flags already merged)
        project_path: Project root used to detect owner/repo from manifests
        target: major/minor/patch or explicit version for an untagged release
        rebuild: Reconcile every tag, deleting releases without a matching tag
        notes_only: Print the release notes and stop
        dry_run: List remote releases and print the plan without writing
        prerelease: Mark the release as a pre-release
        console: Console for standard output
        store: Release store to use instead of the GitHub client

    Returns:
        The performed (or, in dry-run, planned) actions; None for notes-only
    """
    check_release_options(
        rebuild=rebuild,
        target=target,
        prerelease=prerelease,
        notes_only=notes_only,
        dry_run=dry_run,
    )

    candidates = build_candidates(repo, config, target=target, rebuild=rebuild, prerelease=prerelease)

    if notes_only:
        click.echo(candidates[-1].body)
        return None

    owner, repo_name = resolve_owner_repo(config, repo, project_path)
    reconciler = ReleaseReconciler(store or make_client(config), owner, repo_name)

    if dry_run:
        plan = reconciler.plan(candidates, rebuild=rebuild)
    else:
        plan = reconciler.apply(candidates, rebuild=rebuild)

    print_plan(plan, owner, repo_name, dry_run=dry_run, console=console)
    return plan
