"""Deriving a tag name for a version from the configured tag pattern.

This is a best-effort inverse of the tag regex, not a general one. The
pattern is expected to contain the literal ``\\d+\\.\\d+\\.\\d+`` version
placeholder; whatever surrounds it is unescaped and used as prefix and suffix.
If that candidate does not match, ``v<version>`` and ``<version>`` are tried.
"""

from __future__ import annotations

from tagflow.exceptions import TagDerivationError
from tagflow.vcs.git import compile_tag_pattern

SEMVER_PLACEHOLDER = r"\d+\.\d+\.\d+"


def unescape_literal(raw: str) -> str:
    """Drop regex escaping backslashes: ``release\\-`` becomes ``release-``."""
    out: list[str] = []
    chars = iter(raw)
    for ch in chars:
        if ch == "\\":
            out.append(next(chars, ""))
        else:
            out.append(ch)
    return "".join(out)


def tag_candidates(version: str, tag_pattern: str) -> list[str]:
    candidates: list[str] = []

    raw = tag_pattern.removeprefix("^").removesuffix("$")
    prefix, sep, suffix = raw.partition(SEMVER_PLACEHOLDER)
    if sep:
        candidates.append(f"{unescape_literal(prefix)}{version}{unescape_literal(suffix)}")

    candidates.append(f"v{version}")
    candidates.append(version)
    return candidates


def derive_tag_name(version: str, tag_pattern: str) -> str:
    """Tag name for ``version`` that matches ``tag_pattern``.

    Raises:
        InvalidPatternError: If the pattern does not compile
        TagDerivationError: If no candidate matches the pattern
    """
    regex = compile_tag_pattern(tag_pattern)
    for candidate in tag_candidates(version, tag_pattern):
        if regex.search(candidate):
            return candidate
    raise TagDerivationError(f"Cannot derive tag from pattern '{tag_pattern}' for version {version}")
