"""Changelog rendering and composition.

Sections use a fixed Markdown heading grammar::

    ### 2024-01-31 / 1.4.0

    - feat: add output
    - fix: handle empty input

The same grammar is used to detect versions that are already published, so
an unchanged history never produces a second section for the same version.
A custom template may replace the layout using the ``$DATE``, ``$VERSION``
and ``$COMMITS`` placeholders.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from tagflow.core.history import (
    HistoryProvider,
    ReleaseWindow,
    partition_history,
    pending_window,
)
from tagflow.core.version import (
    bump_version,
    latest_tag_version,
    parse_target,
    resolve_version,
)
from tagflow.exceptions import ConflictingOptionsError

if TYPE_CHECKING:
    from tagflow.core.commits import CommitFilter
    from tagflow.vcs.git import Tag

logger = logging.getLogger(__name__)

VERSION_HEADING = re.compile(
    r"^###\s+\d{4}-\d{2}-\d{2}\s*/\s*"
    r"([0-9]+\.[0-9]+\.[0-9]+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?)\s*$",
    re.MULTILINE,
)


@dataclass(frozen=True)
class ChangelogSection:
    """One release worth of changelog: date, version and commit subjects."""

    date: str
    version: str
    commits: tuple[str, ...]


def format_date(timestamp: int) -> str:
    """UTC calendar date of a Unix timestamp as ``YYYY-MM-DD``."""
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%d")


def render_commit_lines(commits: Sequence[str]) -> str:
    return "\n".join(f"- {subject}" for subject in commits)


def render_section(section: ChangelogSection, template: str | None = None) -> str:
    """Render a section with the default layout or ``template``.

    The result never has leading or trailing whitespace.
    """
    commit_lines = render_commit_lines(section.commits)

    if template is not None:
        rendered = (
            template.replace("$DATE", section.date)
            .replace("$VERSION", section.version)
            .replace("$COMMITS", commit_lines)
        )
        return rendered.strip()

    return f"### {section.date} / {section.version}\n\n{commit_lines}".strip()


def extract_versions(markdown: str) -> set[str]:
    """Versions that already have a heading in ``markdown``."""
    return set(VERSION_HEADING.findall(markdown))


def prepend_section(existing: str, section_markdown: str) -> str:
    """Put a rendered section on top of an existing changelog document."""
    existing = existing.strip()
    if not existing:
        return f"{section_markdown}\n"
    return f"{section_markdown}\n\n{existing}\n"


def section_for_window(window: ReleaseWindow, version: str) -> ChangelogSection:
    return ChangelogSection(
        date=format_date(window.timestamp),
        version=version,
        commits=tuple(window.subjects),
    )


@dataclass(frozen=True)
class ChangelogUpdate:
    """Outcome of composing the next changelog section.

    ``content`` is None when nothing should be written; ``skipped_reason``
    then says why.
    """

    version: str | None
    content: str | None
    skipped_reason: str | None = None

    @property
    def changed(self) -> bool:
        return self.content is not None


class ChangelogComposer:
    """Builds changelog documents from tagged history.

    Args:
        provider: Commit history provider answering range queries
        tags: Tags matching the tag pattern, newest first
        commit_filter: Ignore patterns for releasability
        template: Optional section template
    """

    def __init__(
        self,
        provider: HistoryProvider,
        tags: Sequence[Tag],
        commit_filter: CommitFilter,
        template: str | None = None,
    ) -> None:
        self.provider = provider
        self.tags = list(tags)
        self.commit_filter = commit_filter
        self.template = template

    def compose_next(self, existing: str, target: str | None = None) -> ChangelogUpdate:
        """Prepend a section for the unreleased commits to ``existing``.

        Args:
            existing: Current changelog document (may be empty)
            target: ``major``/``minor``/``patch`` or an explicit version;
                defaults to the bump implied by the pending commits

        Raises:
            InvalidVersionError: If ``target`` is not a keyword or a version
        """
        window = pending_window(self.provider, self.tags, self.commit_filter)
        if window.is_empty:
            logger.info("No releasable commits found, changelog not updated")
            return ChangelogUpdate(version=None, content=None, skipped_reason="no releasable commits")

        current = latest_tag_version(self.tags)
        next_version = str(resolve_version(current, parse_target(target, window.bump)))

        if next_version in extract_versions(existing):
            logger.info("Version %s already exists in the changelog", next_version)
            return ChangelogUpdate(
                version=next_version,
                content=None,
                skipped_reason=f"version {next_version} already exists",
            )

        section = render_section(section_for_window(window, next_version), self.template)
        return ChangelogUpdate(version=next_version, content=prepend_section(existing, section))

    def compose_rebuild(self) -> str:
        """Regenerate the whole document: pending section first, then tags newest first."""
        sections: list[str] = []

        for window in partition_history(self.provider, self.tags, self.commit_filter):
            if window.is_empty or window.upper is None:
                continue
            version = window.upper.version
            if version is None:
                logger.debug("Tag %s is not a version, no section rendered", window.upper.name)
                continue
            sections.append(render_section(section_for_window(window, str(version)), self.template))

        pending = pending_window(self.provider, self.tags, self.commit_filter)
        if not pending.is_empty:
            next_version = bump_version(latest_tag_version(self.tags), pending.bump)
            sections.append(render_section(section_for_window(pending, str(next_version)), self.template))

        if not sections:
            return ""
        return "\n\n".join(reversed(sections)) + "\n"


def check_changelog_options(*, rebuild: bool, target: str | None) -> None:
    """Reject option combinations before touching the repository."""
    if rebuild and target is not None:
        raise ConflictingOptionsError("Cannot combine --rebuild with an explicit changelog target")
