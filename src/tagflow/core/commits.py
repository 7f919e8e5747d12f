"""Conventional commit classification and releasability filtering.

Classification follows the Conventional Commits header grammar
``type(scope)!: description`` plus ``BREAKING CHANGE:`` footers. Anything that
does not fit the grammar is a patch-level change.

Releasability is a separate concern: merge commits, ``chore`` commits and
subjects matching a configured ignore pattern never show up in changelogs or
release notes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from tagflow.core.version import BumpType, max_bump
from tagflow.exceptions import InvalidPatternError

if TYPE_CHECKING:
    from tagflow.vcs.git import Commit

logger = logging.getLogger(__name__)

BREAKING_FOOTERS = ("BREAKING CHANGE:", "BREAKING-CHANGE:")


def split_header(subject: str) -> tuple[str, bool]:
    """Return the commit type and whether the header carries a ``!`` marker.

    The header is the text before the first ``": "``; a subject without one
    has an empty header and therefore no type.
    """
    header, sep, _ = subject.partition(": ")
    if not sep:
        header = ""

    breaking = header.endswith("!")
    if breaking:
        header = header[:-1]

    commit_type = header.split("(", 1)[0]
    return commit_type, breaking


def has_breaking_footer(body: str) -> bool:
    """True if any body line (ignoring indentation) is a breaking-change footer."""
    return any(line.lstrip().startswith(BREAKING_FOOTERS) for line in body.splitlines())


def infer_bump(subject: str, body: str = "") -> BumpType:
    """Bump level implied by a single commit.

    Examples:
        >>> infer_bump("feat(api)!: drop v1 endpoints")
        <BumpType.MAJOR: 3>
        >>> infer_bump("feat: add output")
        <BumpType.MINOR: 2>
        >>> infer_bump("Updated the readme")
        <BumpType.PATCH: 1>
    """
    commit_type, header_breaking = split_header(subject)

    if header_breaking or has_breaking_footer(body):
        return BumpType.MAJOR
    if commit_type == "feat":
        return BumpType.MINOR
    return BumpType.PATCH


class CommitFilter:
    """Ordered list of ignore patterns applied to commit subjects.

    Patterns are compiled up front so a bad pattern fails before any commit
    is looked at.
    """

    def __init__(self, patterns: Sequence[str] = (), source: str = "ignore_patterns") -> None:
        self.patterns: list[re.Pattern[str]] = []
        for raw in patterns:
            try:
                self.patterns.append(re.compile(raw))
            except re.error as e:
                raise InvalidPatternError(raw, str(e), source=source) from e

    def matching_pattern(self, subject: str) -> str | None:
        """First pattern that matches ``subject``, if any."""
        for pattern in self.patterns:
            if pattern.search(subject):
                return pattern.pattern
        return None

    def is_ignored(self, subject: str) -> bool:
        return subject.startswith("Merge ") or self.matching_pattern(subject) is not None


def is_releasable(commit: Commit, commit_filter: CommitFilter) -> bool:
    """Whether a commit belongs in changelogs and release notes."""
    return not commit.subject.startswith("chore") and not commit_filter.is_ignored(commit.subject)


def collect_releasable_commits(
    commits: Iterable[Commit],
    commit_filter: CommitFilter,
) -> list[Commit]:
    """Drop merge, chore and ignored commits, keeping the original order."""
    kept = []
    for commit in commits:
        if is_releasable(commit, commit_filter):
            kept.append(commit)
        else:
            logger.debug("Skipping commit: %s", commit.subject)
    return kept


def detect_bump(commits: Iterable[Commit], commit_filter: CommitFilter) -> BumpType:
    """Highest bump level among commits not excluded by ``commit_filter``.

    ``chore`` commits still count here; only the ignore patterns and merge
    commits are left out.
    """
    return max_bump(
        infer_bump(commit.subject, commit.body)
        for commit in commits
        if not commit_filter.is_ignored(commit.subject)
    )
