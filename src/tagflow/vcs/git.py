"""Git repository access via the ``git`` command line.

This is the commit history provider: it answers range queries ("commits
reachable from A but not from B") and lists tags, and can commit and tag
files for the ``update``/``changelog`` commands. All graph traversal is left
to git itself.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING

from tagflow.exceptions import GitError, InvalidPatternError

if TYPE_CHECKING:
    from semver import Version

logger = logging.getLogger(__name__)

# Unit/record separators keep multi-line bodies intact in ``git log`` output.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"


@dataclass(frozen=True)
class Commit:
    """A commit as seen by tagflow: subject, body and commit timestamp."""

    subject: str
    body: str
    timestamp: int

    @classmethod
    def from_message(cls, message: str, timestamp: int) -> Commit:
        """Split a raw message into a trimmed subject line and trimmed body."""
        subject, _, body = message.partition("\n")
        return cls(subject=subject.strip(), body=body.strip(), timestamp=timestamp)


@dataclass(frozen=True)
class Tag:
    """A tag resolved to the commit it points at."""

    name: str
    target: str
    timestamp: int

    @cached_property
    def version(self) -> Version | None:
        """Semantic version encoded in the name, or None if it has none."""
        from tagflow.core.version import parse_tag_version

        return parse_tag_version(self.name)


def compile_tag_pattern(tag_pattern: str) -> re.Pattern[str]:
    """Compile the tag-matching regex.

    Raises:
        InvalidPatternError: If the pattern is not a valid regex
    """
    try:
        return re.compile(tag_pattern)
    except re.error as e:
        raise InvalidPatternError(tag_pattern, str(e), source="tag_pattern") from e


class GitRepository:
    """Thin wrapper around a git working tree."""

    def __init__(self, path: Path | str | None = None) -> None:
        start = Path(path) if path is not None else Path.cwd()
        try:
            top = self._run_in(start, "rev-parse", "--show-toplevel")
        except GitError as e:
            raise GitError(f"Not a git repository: {start}", e.stderr) from e
        self.path = Path(top)

    @staticmethod
    def _run_in(cwd: Path, *args: str, strip: bool = True) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                check=True,
                cwd=cwd,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(f"git {args[0]} failed with exit code {e.returncode}", e.stderr) from e
        return result.stdout.strip() if strip else result.stdout

    def _run(self, *args: str, strip: bool = True) -> str:
        logger.debug("git %s", " ".join(args))
        return self._run_in(self.path, *args, strip=strip)

    def resolve_commit(self, rev: str) -> str:
        """Full id of the commit ``rev`` (a tag, branch or hash) points at."""
        return self._run("rev-parse", "--verify", f"{rev}^{{commit}}")

    # -------------------------------------------------------------------------
    # Commit history provider
    # -------------------------------------------------------------------------

    def get_commits(self, since: str | None = None, until: str | None = None) -> list[Commit]:
        """Commits reachable from ``until`` (HEAD by default) but not from ``since``.

        Returned newest first by commit time. Commits whose subject is empty
        after trimming are skipped.
        """
        until_id = self.resolve_commit(until or "HEAD")
        args = [
            "log",
            "--date-order",
            f"--format=%ct{_FIELD_SEP}%B{_RECORD_SEP}",
            until_id,
        ]
        if since is not None:
            args.append(f"^{self.resolve_commit(since)}")

        output = self._run(*args)
        commits: list[Commit] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            timestamp, _, message = record.partition(_FIELD_SEP)
            commit = Commit.from_message(message, int(timestamp))
            if commit.subject:
                commits.append(commit)

        commits.sort(key=lambda c: c.timestamp, reverse=True)
        return commits

    def get_tags(self, tag_pattern: str) -> list[Tag]:
        """Tags whose names match ``tag_pattern``, newest commit first.

        Raises:
            InvalidPatternError: If ``tag_pattern`` is not a valid regex
        """
        regex = compile_tag_pattern(tag_pattern)
        # Annotated tags carry the commit id and date in the peeled (*) fields
        output = self._run(
            "for-each-ref",
            "--format=%(refname:short)%09%(objectname)%09%(*objectname)"
            "%09%(committerdate:unix)%09%(*committerdate:unix)",
            "refs/tags",
            strip=False,
        )

        tags: list[Tag] = []
        for line in output.splitlines():
            fields = line.split("\t")
            if len(fields) != 5:
                continue
            name, obj, peeled, date, peeled_date = fields
            if not name or not regex.search(name):
                continue
            timestamp = peeled_date if peeled else date
            if not timestamp:
                logger.debug("Skipping tag %s: does not point at a commit", name)
                continue
            tags.append(Tag(name=name, target=peeled or obj, timestamp=int(timestamp)))

        tags.sort(key=lambda t: t.timestamp, reverse=True)
        return tags

    # -------------------------------------------------------------------------
    # Working tree operations
    # -------------------------------------------------------------------------

    def changed_files(self) -> list[str]:
        """Paths with staged, unstaged or untracked changes, relative to the root.

        Renames and copies are reported under their new path.
        """
        output = self._run("status", "--porcelain", "-z", "--untracked-files=all", strip=False)
        entries = iter(output.split("\0"))
        files: list[str] = []
        for entry in entries:
            if len(entry) < 4:
                continue
            status, path = entry[:2], entry[3:]
            if "R" in status or "C" in status:
                # The source path follows as its own entry
                next(entries, None)
            files.append(path)
        return files

    def get_remote_url(self, remote: str = "origin") -> str | None:
        try:
            return self._run("remote", "get-url", remote) or None
        except GitError:
            return None

    def commit_files(self, paths: list[Path], message: str) -> None:
        """Stage ``paths`` along with tracked changes and commit them."""
        self._run("add", "--update")
        self._run("add", "--", *(str(p) for p in paths))
        self._run("commit", "-m", message)

    def create_tag(self, name: str) -> None:
        """Create a lightweight tag on HEAD."""
        self._run("tag", name)
