"""Version control access for tagflow."""

from __future__ import annotations

from tagflow.vcs.git import Commit, GitRepository, Tag

__all__ = ["Commit", "GitRepository", "Tag"]
