"""Semantic version parsing, bumping and target resolution.

Versions are :class:`semver.Version` instances. Tags and manifest fields may
carry a leading ``v`` which is stripped before parsing; everything after that
must be a strict ``MAJOR.MINOR.PATCH[-PRE][+BUILD]`` version.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

from semver import Version

from tagflow.exceptions import InvalidVersionError

if TYPE_CHECKING:
    from tagflow.vcs.git import Tag

__all__ = [
    "BumpTarget",
    "BumpType",
    "ExactTarget",
    "UpdateTarget",
    "Version",
    "bump_version",
    "latest_tag_version",
    "max_bump",
    "parse_tag_version",
    "parse_target",
    "parse_version",
    "resolve_version",
]


class BumpType(IntEnum):
    """Magnitude of a version increase, ordered ``PATCH < MINOR < MAJOR``."""

    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def from_keyword(cls, keyword: str) -> BumpType | None:
        """Return the bump for ``major``/``minor``/``patch`` (any case), else None."""
        try:
            return cls[keyword.strip().upper()]
        except KeyError:
            return None


def max_bump(bumps: Iterable[BumpType]) -> BumpType:
    """Aggregate bump levels of a window; an empty window is a patch."""
    return max(bumps, default=BumpType.PATCH)


def parse_version(raw: str, source: str | None = None) -> Version:
    """Parse a version string, tolerating surrounding whitespace and a ``v`` prefix.

    Args:
        raw: Version text such as ``"1.2.3"`` or ``"v1.2.3"``
        source: Where the text came from, used in the error message

    Returns:
        Parsed version

    Raises:
        InvalidVersionError: If the text is not a strict semantic version
    """
    normalized = raw.strip()
    if normalized.startswith("v"):
        normalized = normalized[1:]
    try:
        return Version.parse(normalized)
    except (ValueError, TypeError) as e:
        raise InvalidVersionError(raw, source) from e


def parse_tag_version(tag_name: str) -> Version | None:
    """Version encoded in a tag name, or None when the tag is not a version."""
    try:
        return parse_version(tag_name)
    except InvalidVersionError:
        return None


def latest_tag_version(tags: Iterable[Tag]) -> Version | None:
    """First parsable version among tags ordered newest first."""
    for tag in tags:
        version = tag.version
        if version is not None:
            return version
    return None


def bump_version(current: Version | None, bump: BumpType) -> Version:
    """Apply one bump step.

    A missing current version counts as ``0.0.0``. Pre-release and build
    metadata never survive a bump.
    """
    if current is None:
        current = Version(0, 0, 0)

    if bump is BumpType.MAJOR:
        return Version(current.major + 1, 0, 0)
    if bump is BumpType.MINOR:
        return Version(current.major, current.minor + 1, 0)
    return Version(current.major, current.minor, current.patch + 1)


@dataclass(frozen=True)
class BumpTarget:
    """Bump the current version by one step."""

    bump: BumpType


@dataclass(frozen=True)
class ExactTarget:
    """Set the version to an explicit value."""

    version: Version


UpdateTarget = BumpTarget | ExactTarget


def parse_target(raw: str | None, detected: BumpType) -> UpdateTarget:
    """Interpret a user-supplied target.

    Args:
        raw: ``major``/``minor``/``patch`` (any case), an explicit version, or
            None to fall back to the bump detected from commits
        detected: Aggregated bump level of the relevant commits

    Raises:
        InvalidVersionError: If ``raw`` is neither a keyword nor a version
    """
    if raw is None:
        return BumpTarget(detected)

    keyword = BumpType.from_keyword(raw)
    if keyword is not None:
        return BumpTarget(keyword)

    return ExactTarget(parse_version(raw, source="target"))


def resolve_version(current: Version | None, target: UpdateTarget) -> Version:
    """Next version for ``current`` under ``target``."""
    if isinstance(target, ExactTarget):
        return target.version
    return bump_version(current, target.bump)
