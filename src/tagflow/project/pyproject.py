"""pyproject.toml version manipulation.

This module reads and updates the version number in pyproject.toml files,
supporting both PEP 621 (``[project].version``) and Poetry
(``[tool.poetry].version``) layouts.

It preserves formatting and comments by using regex-based replacement
rather than full TOML parsing and rewriting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from tagflow.exceptions import ManifestError, VersionNotFoundError

SECTIONS = ("project", "tool.poetry")

_VERSION_LINE = re.compile(r'^(version\s*=\s*)(["\'])([^"\']+)\2', re.MULTILINE)


def _section_pattern(section: str) -> re.Pattern[str]:
    # The section header up to the next table header or EOF
    return re.compile(rf"^\[{re.escape(section)}\][^\n]*\n.*?(?=^\[|\Z)", re.MULTILINE | re.DOTALL)


def find_version(
    content: str,
    sections: tuple[str, ...] = SECTIONS,
) -> tuple[str, re.Match[str], re.Match[str]] | None:
    """Locate the version assignment in a TOML document.

    Returns:
        ``(version, section_match, version_match)`` for the first of
        ``sections`` that has a version, else None. ``version_match`` offsets
        are relative to the section text.
    """
    for section in sections:
        section_match = _section_pattern(section).search(content)
        if section_match is None:
            continue
        version_match = _VERSION_LINE.search(section_match.group(0))
        if version_match is not None:
            return version_match.group(3), section_match, version_match
    return None


def get_pyproject_version(path: Path) -> str:
    """Get the version from pyproject.toml.

    Raises:
        VersionNotFoundError: If neither supported section has a version
    """
    found = find_version(read_manifest(path))
    if found is None:
        raise VersionNotFoundError(
            f"No supported version field found in {path} "
            "(expected [project].version or [tool.poetry].version)"
        )
    return found[0]


def replace_version(content: str, found: tuple[str, re.Match[str], re.Match[str]], new_version: str) -> str:
    """Swap the located version string for ``new_version``."""
    _, section_match, version_match = found
    start = section_match.start() + version_match.start(3)
    end = section_match.start() + version_match.end(3)
    return content[:start] + new_version + content[end:]


def update_pyproject_version(path: Path, new_version: str) -> Path:
    """Update the version in pyproject.toml in place.

    Only the version string itself changes; quoting style, comments and the
    rest of the file are kept.

    Raises:
        VersionNotFoundError: If neither supported section has a version
    """
    content = read_manifest(path)
    found = find_version(content)
    if found is None:
        raise VersionNotFoundError(
            f"No supported version field found in {path} "
            "(expected [project].version or [tool.poetry].version)"
        )

    path.write_text(replace_version(content, found, new_version), encoding="utf-8")
    return path


def read_manifest(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e


@dataclass(frozen=True)
class PyprojectFile:
    """Version file backed by pyproject.toml."""

    path: Path

    def read_version(self) -> str:
        return get_pyproject_version(self.path)

    def write_version(self, version: str) -> None:
        update_pyproject_version(self.path, version)
