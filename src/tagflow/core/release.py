"""Release candidates and reconciliation against a remote release store.

The reconciler makes the remote release set match a desired list of
candidates with as few writes as possible:

1. list existing releases
2. in rebuild mode, delete releases whose tag is not desired, then list again
3. per candidate: create when missing, skip when name and body already match,
   update in place otherwise

Matching is by tag name only. The first failing remote call aborts the rest
of the plan.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from tagflow.exceptions import ConflictingOptionsError, ReleaseApiError

if TYPE_CHECKING:
    from tagflow.core.history import ReleaseWindow

logger = logging.getLogger(__name__)

NO_CHANGES_BODY = "- No notable changes."


@dataclass(frozen=True)
class ReleaseCandidate:
    """Desired state of one release."""

    tag_name: str
    title: str
    body: str
    draft: bool = False
    prerelease: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "tag_name": self.tag_name,
            "name": self.title,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
        }


@dataclass(frozen=True)
class ExistingRelease:
    """A release as observed on the remote."""

    id: int
    tag_name: str
    name: str | None = None
    body: str | None = None

    def matches(self, candidate: ReleaseCandidate) -> bool:
        return self.name == candidate.title and self.body == candidate.body


class ReleaseStore(Protocol):
    """Remote release CRUD; each call is one blocking request."""

    def list_releases(self, owner: str, repo: str) -> list[ExistingRelease]: ...

    def create_release(self, owner: str, repo: str, payload: dict[str, object]) -> None: ...

    def update_release(self, owner: str, repo: str, release_id: int, payload: dict[str, object]) -> None: ...

    def delete_release(self, owner: str, repo: str, release_id: int) -> None: ...


# =============================================================================
# Candidate construction
# =============================================================================


def normalize_release_version(version: str) -> str:
    return version.removeprefix("v")


def release_tag(tag_name: str) -> str:
    return f"v{normalize_release_version(tag_name)}"


def release_title(tag_name: str) -> str:
    return normalize_release_version(tag_name)


def render_release_body(subjects: Sequence[str]) -> str:
    if not subjects:
        return NO_CHANGES_BODY
    return "\n".join(f"- {subject}" for subject in subjects)


def candidate_for_window(
    window: ReleaseWindow,
    tag_name: str,
    *,
    draft: bool = False,
    prerelease: bool = False,
) -> ReleaseCandidate:
    return ReleaseCandidate(
        tag_name=release_tag(tag_name),
        title=release_title(tag_name),
        body=render_release_body(window.subjects),
        draft=draft,
        prerelease=prerelease,
    )


def build_release_candidates(windows: Iterable[ReleaseWindow]) -> list[ReleaseCandidate]:
    """One candidate per tag window, in the order given (oldest first)."""
    return [
        candidate_for_window(window, window.upper.name)
        for window in windows
        if window.upper is not None
    ]


def check_release_options(
    *,
    rebuild: bool,
    target: str | None,
    prerelease: bool,
    notes_only: bool = False,
    dry_run: bool = False,
) -> None:
    """Reject option combinations before any git or network access."""
    if rebuild and target is not None:
        raise ConflictingOptionsError("Cannot combine --rebuild with an explicit release target")
    if prerelease and target is None:
        raise ConflictingOptionsError("--prerelease requires an explicit release target")
    if notes_only and (rebuild or dry_run):
        raise ConflictingOptionsError("--notes-only cannot be combined with --rebuild or --dry-run")


# =============================================================================
# Reconciliation
# =============================================================================


class ActionKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SKIP = "skip"


@dataclass(frozen=True)
class PlannedAction:
    kind: ActionKind
    tag_name: str
    release_id: int | None = None

    def describe(self) -> str:
        if self.kind is ActionKind.SKIP:
            return f"release {self.tag_name} is up to date"
        return f"{self.kind.value} release {self.tag_name}"


@dataclass
class ReleasePlan:
    """Actions in the order they are (or would be) performed."""

    actions: list[PlannedAction] = field(default_factory=list)

    def of_kind(self, kind: ActionKind) -> list[PlannedAction]:
        return [a for a in self.actions if a.kind is kind]

    @property
    def writes(self) -> list[PlannedAction]:
        return [a for a in self.actions if a.kind is not ActionKind.SKIP]


class ReleaseReconciler:
    """Brings the releases of ``owner/repo`` in line with a candidate list."""

    def __init__(self, store: ReleaseStore, owner: str, repo: str) -> None:
        self.store = store
        self.owner = owner
        self.repo = repo

    def _list(self) -> list[ExistingRelease]:
        try:
            return self.store.list_releases(self.owner, self.repo)
        except ReleaseApiError:
            raise
        except Exception as e:
            raise ReleaseApiError("list", None, str(e)) from e

    def _call(self, action: PlannedAction, candidate: ReleaseCandidate | None = None) -> None:
        logger.info("%s", action.describe().capitalize())
        try:
            if action.kind is ActionKind.DELETE:
                self.store.delete_release(self.owner, self.repo, action.release_id)
            elif action.kind is ActionKind.UPDATE:
                self.store.update_release(self.owner, self.repo, action.release_id, candidate.to_payload())
            elif action.kind is ActionKind.CREATE:
                self.store.create_release(self.owner, self.repo, candidate.to_payload())
        except ReleaseApiError as e:
            if e.tag_name == action.tag_name:
                raise
            # The store only knows release ids for deletions; name the tag.
            raise ReleaseApiError(action.kind.value, action.tag_name, e.detail, e.status_code) from e
        except Exception as e:
            raise ReleaseApiError(action.kind.value, action.tag_name, str(e)) from e

    @staticmethod
    def _deletions(
        existing: Sequence[ExistingRelease],
        candidates: Sequence[ReleaseCandidate],
    ) -> list[PlannedAction]:
        desired = {c.tag_name for c in candidates}
        return [
            PlannedAction(ActionKind.DELETE, release.tag_name, release.id)
            for release in existing
            if release.tag_name not in desired
        ]

    @staticmethod
    def _upserts(
        existing: Sequence[ExistingRelease],
        candidates: Sequence[ReleaseCandidate],
    ) -> list[PlannedAction]:
        by_tag: dict[str, ExistingRelease] = {}
        for release in existing:
            by_tag.setdefault(release.tag_name, release)

        actions = []
        for candidate in candidates:
            found = by_tag.get(candidate.tag_name)
            if found is None:
                actions.append(PlannedAction(ActionKind.CREATE, candidate.tag_name))
            elif found.matches(candidate):
                actions.append(PlannedAction(ActionKind.SKIP, candidate.tag_name, found.id))
            else:
                actions.append(PlannedAction(ActionKind.UPDATE, candidate.tag_name, found.id))
        return actions

    def plan(self, candidates: Sequence[ReleaseCandidate], *, rebuild: bool = False) -> ReleasePlan:
        """Compute the actions without changing anything remotely.

        Upserts are planned against the current listing minus the releases
        that a rebuild would delete.
        """
        existing = self._list()
        deletions = self._deletions(existing, candidates) if rebuild else []
        deleted_ids = {a.release_id for a in deletions}
        remaining = [r for r in existing if r.id not in deleted_ids]
        return ReleasePlan(actions=deletions + self._upserts(remaining, candidates))

    def apply(self, candidates: Sequence[ReleaseCandidate], *, rebuild: bool = False) -> ReleasePlan:
        """Reconcile remote releases with ``candidates``.

        Raises:
            ReleaseApiError: On the first failing remote call; nothing after it runs
        """
        performed = ReleasePlan()
        existing = self._list()

        if rebuild:
            deletions = self._deletions(existing, candidates)
            for action in deletions:
                self._call(action)
                performed.actions.append(action)
            if deletions:
                existing = self._list()

        by_tag = {c.tag_name: c for c in candidates}
        for action in self._upserts(existing, candidates):
            if action.kind is ActionKind.SKIP:
                logger.debug("Release %s unchanged, skipping", action.tag_name)
            else:
                self._call(action, by_tag[action.tag_name])
            performed.actions.append(action)

        return performed
