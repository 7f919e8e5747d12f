"""Project manifest handling: reading and rewriting version fields."""

from __future__ import annotations

from tagflow.project.manifests import (
    VersionFile,
    detect_version_file,
    update_project_version,
)
from tagflow.project.pyproject import get_pyproject_version, update_pyproject_version

__all__ = [
    "VersionFile",
    "detect_version_file",
    "get_pyproject_version",
    "update_project_version",
    "update_pyproject_version",
]
