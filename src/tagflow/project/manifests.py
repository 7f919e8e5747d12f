"""Project manifests that carry a version number.

Every supported manifest kind implements the small :class:`VersionFile`
protocol (``read_version`` / ``write_version``) and owns its own parsing and
serialisation. :func:`detect_version_file` checks the project root in a fixed
order and returns the first kind that is present.

Text formats are edited with targeted regex replacement so that comments and
layout survive; only ``package.json`` is re-serialised.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from tagflow.core.version import Version, parse_version, resolve_version
from tagflow.exceptions import ManifestError, ManifestNotFoundError, VersionNotFoundError
from tagflow.project.pyproject import PyprojectFile, find_version, read_manifest, replace_version

if TYPE_CHECKING:
    from tagflow.core.version import UpdateTarget

logger = logging.getLogger(__name__)


class VersionFile(Protocol):
    """A manifest whose version field can be read and rewritten."""

    path: Path

    def read_version(self) -> str: ...

    def write_version(self, version: str) -> None: ...


@dataclass(frozen=True)
class CargoTomlFile:
    """``Cargo.toml``: ``[package].version`` (or ``[workspace.package]``)."""

    path: Path

    sections = ("package", "workspace.package")

    def _find(self) -> tuple[str, tuple[str, re.Match[str], re.Match[str]]]:
        content = read_manifest(self.path)
        found = find_version(content, self.sections)
        if found is None:
            raise VersionNotFoundError(f"No package version found in {self.path}")
        return content, found

    def read_version(self) -> str:
        return self._find()[1][0]

    def write_version(self, version: str) -> None:
        content, found = self._find()
        self.path.write_text(replace_version(content, found, version), encoding="utf-8")


@dataclass(frozen=True)
class PackageJsonFile:
    """``package.json``: top-level ``version`` key."""

    path: Path

    def _load(self) -> dict:
        try:
            data = json.loads(read_manifest(self.path))
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid JSON in {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ManifestError(f"{self.path} must contain a top-level object")
        return data

    def read_version(self) -> str:
        version = self._load().get("version")
        if not isinstance(version, str):
            raise VersionNotFoundError(f"No 'version' field found in {self.path}")
        return version

    def write_version(self, version: str) -> None:
        data = self._load()
        data["version"] = version
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


@dataclass(frozen=True)
class LineVersionFile:
    """Manifest where the version sits on a single line.

    ``patterns`` are tried in order on each line; each must define the named
    groups ``prefix``, ``version`` and ``suffix``. Only the first matching
    line is rewritten.
    """

    path: Path
    patterns: tuple[re.Pattern[str], ...]
    description: str

    def _locate(self) -> tuple[list[str], int, re.Match[str]]:
        lines = read_manifest(self.path).splitlines()
        for index, line in enumerate(lines):
            for pattern in self.patterns:
                match = pattern.match(line)
                if match is not None:
                    return lines, index, match
        raise VersionNotFoundError(f"No {self.description} found in {self.path}")

    def read_version(self) -> str:
        return self._locate()[2].group("version")

    def write_version(self, version: str) -> None:
        lines, index, match = self._locate()
        lines[index] = f"{match.group('prefix')}{version}{match.group('suffix')}"
        self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")


GEMSPEC_VERSION = re.compile(r"""^(?P<prefix>\s*\w+\.version\s*=\s*["'])(?P<version>[^"']+)(?P<suffix>["']\s*)$""")
MIX_VERSION = re.compile(r"""^(?P<prefix>\s*version:\s*["'])(?P<version>[^"']+)(?P<suffix>["']\s*,?\s*)$""")
PUBSPEC_VERSION = re.compile(r"""^(?P<prefix>version:\s*["']?)(?P<version>[^"'\s#]+)(?P<suffix>["']?\s*(?:#.*)?)$""")
SWIFT_VARIABLE = re.compile(
    r"""^(?P<prefix>\s*(?:let|var)\s+version\s*=\s*["'])(?P<version>[^"']+)(?P<suffix>["']\s*)$"""
)
SWIFT_ARGUMENT = re.compile(r"""^(?P<prefix>\s*version\s*:\s*["'])(?P<version>[^"']+)(?P<suffix>["']\s*,?\s*)$""")
PLAIN_VERSION = re.compile(r"^(?P<prefix>\s*)(?P<version>\S+)(?P<suffix>\s*)$")


def gemspec_file(path: Path) -> LineVersionFile:
    return LineVersionFile(path, (GEMSPEC_VERSION,), "spec.version assignment")


def mix_exs_file(path: Path) -> LineVersionFile:
    return LineVersionFile(path, (MIX_VERSION,), "version: field")


def pubspec_file(path: Path) -> LineVersionFile:
    return LineVersionFile(path, (PUBSPEC_VERSION,), "'version' field")


def package_swift_file(path: Path) -> LineVersionFile:
    return LineVersionFile(
        path,
        (SWIFT_VARIABLE, SWIFT_ARGUMENT),
        'supported version assignment (expected let/var version = "x.y.z" or version: "x.y.z")',
    )


@dataclass(frozen=True)
class PlainVersionFile:
    """A ``version`` or ``VERSION`` file holding nothing but the version."""

    path: Path

    def read_version(self) -> str:
        content = read_manifest(self.path).strip()
        if not content:
            raise VersionNotFoundError(f"{self.path} is empty")
        return content

    def write_version(self, version: str) -> None:
        self.path.write_text(f"{version}\n", encoding="utf-8")


# Detection order matters: the first manifest present wins.
_DETECTION_ORDER: tuple[tuple[str, Callable[[Path], VersionFile]], ...] = (
    ("Cargo.toml", CargoTomlFile),
    ("package.json", PackageJsonFile),
    ("pyproject.toml", PyprojectFile),
    ("*.gemspec", gemspec_file),
    ("mix.exs", mix_exs_file),
    ("pubspec.yaml", pubspec_file),
    ("Package.swift", package_swift_file),
    ("version", PlainVersionFile),
    ("VERSION", PlainVersionFile),
)

SUPPORTED_MANIFESTS = ", ".join(name for name, _ in _DETECTION_ORDER)


def detect_version_file(root: Path) -> VersionFile:
    """First supported manifest found in ``root``.

    Raises:
        ManifestNotFoundError: If none of the supported files exist
    """
    for name, factory in _DETECTION_ORDER:
        if "*" in name:
            matches = sorted(p for p in root.glob(name) if p.is_file())
            if matches:
                return factory(matches[0])
            continue
        path = root / name
        # Case-sensitive check: "version" must not pick up "VERSION" on
        # case-insensitive filesystems.
        if path.is_file() and name in {p.name for p in root.iterdir()}:
            return factory(path)

    raise ManifestNotFoundError(f"No supported package file found ({SUPPORTED_MANIFESTS})")


def update_project_version(root: Path, target: UpdateTarget) -> tuple[Version, Path]:
    """Rewrite the version of the project manifest in ``root``.

    Returns:
        The new version and the path of the rewritten manifest

    Raises:
        ManifestNotFoundError: If no supported manifest exists
        VersionNotFoundError: If the manifest has no version field
        InvalidVersionError: If the current version is not a semantic version
    """
    manifest = detect_version_file(root)
    current = parse_version(manifest.read_version(), source=str(manifest.path))
    next_version = resolve_version(current, target)

    logger.info("Updating %s from %s to %s", manifest.path.name, current, next_version)
    manifest.write_version(str(next_version))
    return next_version, manifest.path
