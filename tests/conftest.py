"""Shared fixtures for tagflow tests."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tagflow.core.release import ExistingRelease
from tagflow.exceptions import ReleaseApiError
from tagflow.vcs.git import Commit, Tag

# =============================================================================
# In-memory history provider
# =============================================================================


class FakeHistory:
    """Linear history with tags, answering the same range queries as git.

    Commits are appended oldest first; ``tag()`` marks the latest commit.
    """

    def __init__(self) -> None:
        self.commits: list[Commit] = []
        self._tags: dict[str, int] = {}
        self.queries: list[tuple[str | None, str | None]] = []

    def add(self, subject: str, timestamp: int | None = None, body: str = "") -> FakeHistory:
        if timestamp is None:
            timestamp = 1_700_000_000 + len(self.commits) * 86_400
        self.commits.append(Commit(subject=subject, body=body, timestamp=timestamp))
        return self

    def tag(self, name: str) -> FakeHistory:
        self._tags[name] = len(self.commits) - 1
        return self

    def get_commits(self, since: str | None = None, until: str | None = None) -> list[Commit]:
        self.queries.append((since, until))
        end = self._tags[until] if until is not None else len(self.commits) - 1
        start = self._tags[since] if since is not None else -1
        window = self.commits[start + 1 : end + 1]
        return sorted(window, key=lambda c: c.timestamp, reverse=True)

    def get_tags(self, tag_pattern: str = r"^v\d+\.\d+\.\d+$") -> list[Tag]:
        regex = re.compile(tag_pattern)
        tags = [
            Tag(name=name, target=str(index), timestamp=self.commits[index].timestamp)
            for name, index in self._tags.items()
            if regex.search(name)
        ]
        return sorted(tags, key=lambda t: t.timestamp, reverse=True)


@pytest.fixture
def history() -> FakeHistory:
    return FakeHistory()


# =============================================================================
# In-memory release store
# =============================================================================


@dataclass
class FakeReleaseStore:
    """Release store that records every call.

    ``fail_on`` makes the named operation (optionally for one tag) raise.
    """

    releases: list[ExistingRelease] = field(default_factory=list)
    calls: list[tuple[str, str | int]] = field(default_factory=list)
    fail_on: tuple[str, str | None] | None = None
    _next_id: int = 1000

    def _maybe_fail(self, operation: str, tag_name: str | None) -> None:
        if self.fail_on is None:
            return
        op, tag = self.fail_on
        if op == operation and (tag is None or tag == tag_name):
            raise ReleaseApiError(operation, tag_name, "boom", 500)

    def list_releases(self, owner: str, repo: str) -> list[ExistingRelease]:
        self.calls.append(("list", f"{owner}/{repo}"))
        self._maybe_fail("list", None)
        return list(self.releases)

    def create_release(self, owner: str, repo: str, payload: dict[str, object]) -> None:
        tag_name = str(payload["tag_name"])
        self.calls.append(("create", tag_name))
        self._maybe_fail("create", tag_name)
        self._next_id += 1
        self.releases.append(
            ExistingRelease(self._next_id, tag_name, str(payload["name"]), str(payload["body"]))
        )

    def update_release(self, owner: str, repo: str, release_id: int, payload: dict[str, object]) -> None:
        tag_name = str(payload["tag_name"])
        self.calls.append(("update", tag_name))
        self._maybe_fail("update", tag_name)
        self.releases = [
            ExistingRelease(r.id, r.tag_name, str(payload["name"]), str(payload["body"]))
            if r.id == release_id
            else r
            for r in self.releases
        ]

    def delete_release(self, owner: str, repo: str, release_id: int) -> None:
        self.calls.append(("delete", release_id))
        # The store only sees ids, like the real API
        self._maybe_fail("delete", None)
        self.releases = [r for r in self.releases if r.id != release_id]

    def writes(self) -> list[tuple[str, str | int]]:
        return [call for call in self.calls if call[0] != "list"]


@pytest.fixture
def release_store() -> FakeReleaseStore:
    return FakeReleaseStore()


# =============================================================================
# Real git repositories
# =============================================================================


@dataclass
class GitFixture:
    """Throwaway git repository with deterministic commit times."""

    path: Path
    clock: int = 1_700_000_000

    def git(self, *args: str) -> str:
        env = {
            **os.environ,
            "GIT_AUTHOR_DATE": f"@{self.clock} +0000",
            "GIT_COMMITTER_DATE": f"@{self.clock} +0000",
        }
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            text=True,
            check=True,
            env=env,
        )
        return result.stdout

    def commit(self, message: str, filename: str = "file.txt") -> None:
        self.clock += 3600
        target = self.path / filename
        with target.open("a", encoding="utf-8") as fh:
            fh.write(f"{message}\n")
        self.git("add", filename)
        self.git("commit", "-q", "-m", message)

    def tag(self, name: str) -> None:
        self.git("tag", name)


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GitFixture:
    """Empty repository on branch main, with cwd set to it."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    fixture = GitFixture(repo_path)
    fixture.git("init", "-q", "-b", "main")
    fixture.git("config", "user.name", "Test")
    fixture.git("config", "user.email", "test@test.com")
    fixture.git("config", "commit.gpgsign", "false")
    fixture.git("config", "tag.gpgsign", "false")

    monkeypatch.chdir(repo_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in (
        "TAGFLOW_TOKEN",
        "GH_RELEASE_TOKEN",
        "TAGFLOW_OWNER",
        "TAGFLOW_REPO",
        "TAGFLOW_TAG_PATTERN",
        "TAGFLOW_CHANGELOG_TEMPLATE",
        "TAGFLOW_IGNORE_PATTERNS",
        "TAGFLOW_VERBOSE",
        "TAGFLOW_GITHUB_API_BASE",
    ):
        monkeypatch.delenv(var, raising=False)
    return fixture
