"""Tests for history partitioning into release windows."""

from __future__ import annotations

from tagflow.core.commits import CommitFilter
from tagflow.core.history import (
    ReleaseWindow,
    commit_priority,
    partition_history,
    pending_window,
    sort_commits,
)
from tagflow.core.version import BumpType
from tagflow.vcs.git import Commit, Tag


class TestCommitPriority:
    """Tests for commit_priority() and sort_commits()."""

    def test_levels(self):
        """Breaking > feat > fix > other."""
        assert commit_priority("refactor!: x") == 3
        assert commit_priority("docs: BREAKING CHANGE mentioned") == 3
        assert commit_priority("feat: x") == 2
        assert commit_priority("fix: x") == 1
        assert commit_priority("docs: x") == 0

    def test_heuristic_differs_from_grammar(self):
        """'featured' starts with feat, so it sorts as a feature."""
        assert commit_priority("featured article") == 2

    def test_sort_priority_then_newest(self):
        """Priority groups first, newest first inside each group."""
        commits = [
            Commit("fix: old fix", "", 100),
            Commit("docs: readme", "", 500),
            Commit("feat: new feat", "", 400),
            Commit("fix: new fix", "", 300),
            Commit("feat!: breaking", "", 50),
        ]
        assert [c.subject for c in sort_commits(commits)] == [
            "feat!: breaking",
            "feat: new feat",
            "fix: new fix",
            "fix: old fix",
            "docs: readme",
        ]

    def test_sort_keeps_traversal_order_on_ties(self):
        """Commits with equal priority and timestamp keep their input order."""
        commits = [
            Commit("docs: newest other", "", 4),
            Commit("feat: b", "", 1),
            Commit("feat!: first", "", 3),
            Commit("fix!: second", "", 3),
            Commit("docs: oldest other", "", 1),
            Commit("fix: f", "", 2),
        ]
        assert [commit_priority(c.subject) for c in commits] == [0, 2, 3, 3, 0, 1]

        assert [c.subject for c in sort_commits(commits)] == [
            "feat!: first",
            "fix!: second",
            "feat: b",
            "fix: f",
            "docs: newest other",
            "docs: oldest other",
        ]


class TestReleaseWindow:
    """Tests for ReleaseWindow properties."""

    def test_empty_pending(self):
        """A pending window without commits has timestamp zero."""
        window = ReleaseWindow(lower=None, upper=None, commits=())
        assert window.is_empty
        assert window.is_pending
        assert window.timestamp == 0
        assert window.bump is BumpType.PATCH

    def test_timestamp_is_newest_commit(self):
        """The window date comes from the newest commit, not the first listed."""
        window = ReleaseWindow(
            lower=None,
            upper=Tag("v1.0.0", "abc", 9_999),
            commits=(Commit("feat: a", "", 100), Commit("fix: b", "", 300)),
        )
        assert window.timestamp == 300
        assert window.bump is BumpType.MINOR

    def test_empty_tag_window_uses_tag_time(self):
        """An empty tagged window falls back to the tag timestamp."""
        window = ReleaseWindow(lower=None, upper=Tag("v1.0.0", "abc", 9_999), commits=())
        assert window.timestamp == 9_999


class TestPartitionHistory:
    """Tests for partition_history() and pending_window()."""

    def test_windows_oldest_first(self, history):
        """One window per tag, ordered oldest to newest."""
        history.add("feat: first").add("fix: second").tag("v0.1.0")
        history.add("feat: third").tag("v0.2.0")
        history.add("fix: pending")

        tags = history.get_tags()
        windows = partition_history(history, tags, CommitFilter([]))

        assert [w.upper.name for w in windows] == ["v0.1.0", "v0.2.0"]
        assert windows[0].lower is None
        assert windows[1].lower.name == "v0.1.0"
        assert windows[0].subjects == ["feat: first", "fix: second"]
        assert windows[1].subjects == ["feat: third"]

    def test_queries_use_tag_ranges(self, history):
        """Each window asks for (previous tag, tag]."""
        history.add("a").tag("v0.1.0").add("b").tag("v0.2.0")
        partition_history(history, history.get_tags(), CommitFilter([]))
        assert history.queries == [(None, "v0.1.0"), ("v0.1.0", "v0.2.0")]

    def test_empty_windows_kept(self, history):
        """Windows with only non-releasable commits are still returned."""
        history.add("feat: a").tag("v0.1.0").add("chore: release").tag("v0.1.1")
        windows = partition_history(history, history.get_tags(), CommitFilter([]))
        assert len(windows) == 2
        assert windows[1].is_empty

    def test_each_commit_in_one_window(self, history):
        """Windows never share commits."""
        for i in range(6):
            history.add(f"fix: change {i}")
            if i % 2:
                history.tag(f"v0.0.{i}")
        windows = partition_history(history, history.get_tags(), CommitFilter([]))

        seen = [s for w in windows for s in w.subjects]
        assert len(seen) == len(set(seen)) == 6

    def test_no_tags(self, history):
        """Without tags there are no tagged windows."""
        history.add("feat: a")
        assert partition_history(history, [], CommitFilter([])) == []

    def test_pending_window(self, history):
        """The pending window holds commits after the newest tag."""
        history.add("feat: a").tag("v0.1.0").add("fix: b").add("feat: c")
        window = pending_window(history, history.get_tags(), CommitFilter([]))

        assert window.is_pending
        assert window.lower.name == "v0.1.0"
        assert window.subjects == ["feat: c", "fix: b"]
        assert window.bump is BumpType.MINOR

    def test_pending_window_since(self, history):
        """An explicit lower tag overrides the newest one."""
        history.add("feat: a").tag("v0.1.0").add("fix: b").tag("v0.1.1").add("fix: c")
        tags = history.get_tags()
        window = pending_window(history, tags, CommitFilter([]), since=tags[1])
        assert window.subjects == ["fix: c", "fix: b"]

    def test_pending_without_tags(self, history):
        """Without tags the whole history is pending."""
        history.add("feat: a").add("Merge branch 'x'").add("fix: b")
        window = pending_window(history, [], CommitFilter([]))
        assert window.lower is None
        assert window.subjects == ["feat: a", "fix: b"]
