"""Core business logic for tagflow.

This module contains the fundamental building blocks:
- Conventional commit classification and filtering
- Partitioning history into tag-bounded release windows
- Version parsing, bumping and target resolution
- Changelog rendering and composition
- Release reconciliation against a remote store
"""

from __future__ import annotations

from tagflow.core.changelog import (
    ChangelogComposer,
    ChangelogSection,
    extract_versions,
    prepend_section,
    render_section,
)
from tagflow.core.commits import CommitFilter, collect_releasable_commits, detect_bump, infer_bump
from tagflow.core.history import ReleaseWindow, partition_history, pending_window, sort_commits
from tagflow.core.release import (
    ExistingRelease,
    ReleaseCandidate,
    ReleasePlan,
    ReleaseReconciler,
    build_release_candidates,
)
from tagflow.core.version import BumpType, Version, bump_version, parse_target, parse_version

__all__ = [
    # Version
    "BumpType",
    # Changelog
    "ChangelogComposer",
    "ChangelogSection",
    # Commits
    "CommitFilter",
    # Release
    "ExistingRelease",
    "ReleaseCandidate",
    "ReleasePlan",
    "ReleaseReconciler",
    # History
    "ReleaseWindow",
    "Version",
    "build_release_candidates",
    "bump_version",
    "collect_releasable_commits",
    "detect_bump",
    "extract_versions",
    "infer_bump",
    "parse_target",
    "parse_version",
    "partition_history",
    "pending_window",
    "prepend_section",
    "render_section",
    "sort_commits",
]
