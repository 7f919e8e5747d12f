"""GitHub release store."""

from __future__ import annotations

from tagflow.github.client import GitHubReleaseClient, parse_github_repo_from_url

__all__ = ["GitHubReleaseClient", "parse_github_repo_from_url"]
