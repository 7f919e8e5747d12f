"""Partitioning of commit history into tag-bounded release windows.

The partitioner never walks the commit graph itself. It asks the history
provider for "reachable from this tag but not from the previous one" ranges,
which keeps merge-heavy histories correct without modelling the graph.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from tagflow.core.commits import CommitFilter, collect_releasable_commits, infer_bump
from tagflow.core.version import BumpType, max_bump

if TYPE_CHECKING:
    from tagflow.vcs.git import Commit, Tag


class HistoryProvider(Protocol):
    """What the partitioner needs from a repository."""

    def get_commits(self, since: str | None = None, until: str | None = None) -> list[Commit]: ...


def commit_priority(subject: str) -> int:
    """Display priority of a commit inside a changelog section.

    This is a plain substring heuristic used only for ordering. Version bumps
    use :func:`tagflow.core.commits.infer_bump` instead.
    """
    if "BREAKING CHANGE" in subject or "!:" in subject:
        return 3
    if subject.startswith("feat"):
        return 2
    if subject.startswith("fix"):
        return 1
    return 0


def sort_commits(commits: Iterable[Commit]) -> list[Commit]:
    """Breaking first, then features, fixes and the rest; newest first within each."""
    return sorted(commits, key=lambda c: (-commit_priority(c.subject), -c.timestamp))


@dataclass(frozen=True)
class ReleaseWindow:
    """Commits attributed to one release.

    ``upper`` is None for the pending window, i.e. commits on the current
    branch that no tag covers yet.
    """

    lower: Tag | None
    upper: Tag | None
    commits: tuple[Commit, ...]

    @property
    def is_empty(self) -> bool:
        return not self.commits

    @property
    def is_pending(self) -> bool:
        return self.upper is None

    @property
    def bump(self) -> BumpType:
        return max_bump(infer_bump(c.subject, c.body) for c in self.commits)

    @property
    def subjects(self) -> list[str]:
        return [c.subject for c in self.commits]

    @property
    def timestamp(self) -> int:
        """Time of the newest commit, else of the upper tag, else zero."""
        if self.commits:
            return max(c.timestamp for c in self.commits)
        if self.upper is not None:
            return self.upper.timestamp
        return 0


def _window(
    provider: HistoryProvider,
    lower: Tag | None,
    upper: Tag | None,
    commit_filter: CommitFilter,
) -> ReleaseWindow:
    commits = provider.get_commits(
        since=lower.name if lower is not None else None,
        until=upper.name if upper is not None else None,
    )
    releasable = collect_releasable_commits(commits, commit_filter)
    return ReleaseWindow(lower=lower, upper=upper, commits=tuple(sort_commits(releasable)))


def partition_history(
    provider: HistoryProvider,
    tags: Sequence[Tag],
    commit_filter: CommitFilter,
) -> list[ReleaseWindow]:
    """One window per tag, oldest tag first.

    Args:
        provider: Answers commit range queries
        tags: Tags ordered newest first, already filtered by the tag pattern
        commit_filter: Ignore patterns for releasability

    Returns:
        Windows in oldest-to-newest order. Windows without releasable commits
        are included; callers decide whether to skip them.
    """
    windows: list[ReleaseWindow] = []
    previous: Tag | None = None
    for tag in reversed(tags):
        windows.append(_window(provider, previous, tag, commit_filter))
        previous = tag
    return windows


def pending_window(
    provider: HistoryProvider,
    tags: Sequence[Tag],
    commit_filter: CommitFilter,
    since: Tag | None = None,
) -> ReleaseWindow:
    """Commits on the current branch after the newest tag (or ``since``)."""
    lower = since if since is not None else (tags[0] if tags else None)
    return _window(provider, lower, None, commit_filter)
