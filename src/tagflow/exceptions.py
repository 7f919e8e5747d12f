"""Exception hierarchy for tagflow.

Every error raised on purpose by tagflow derives from :class:`TagflowError`
so the CLI can report it uniformly. The subclasses fall into four groups:

- input/grammar errors (bad versions, bad regular expressions, bad config)
- state-consistency errors (options that cannot be combined)
- remote errors (release API failures)
- not-found conditions (no tags, no manifest, no config)
"""

from __future__ import annotations


class TagflowError(Exception):
    """Base class for all tagflow errors."""


# =============================================================================
# Input / grammar errors
# =============================================================================


class InvalidVersionError(TagflowError):
    """A string could not be parsed as a semantic version."""

    def __init__(self, raw: str, source: str | None = None) -> None:
        self.raw = raw
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Invalid semver '{raw.strip()}'{where}")


class InvalidPatternError(TagflowError):
    """A configured regular expression does not compile."""

    def __init__(self, pattern: str, reason: str, source: str | None = None) -> None:
        self.pattern = pattern
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(f"Invalid regex pattern '{pattern}'{where}: {reason}")


class ConfigError(TagflowError):
    """Configuration is missing a required value."""


class ConfigValidationError(ConfigError):
    """A configuration file could not be parsed or failed validation."""


class ManifestError(TagflowError):
    """A project manifest could not be read or rewritten."""


class VersionNotFoundError(ManifestError):
    """A manifest exists but has no usable version field."""


# =============================================================================
# State-consistency errors
# =============================================================================


class ConflictingOptionsError(TagflowError):
    """Requested options are mutually exclusive."""


# =============================================================================
# Not-found conditions
# =============================================================================


class ConfigNotFoundError(ConfigError):
    """An explicitly requested configuration file does not exist."""


class NoTagsFoundError(TagflowError):
    """No git tag matches the configured tag pattern."""

    def __init__(self, tag_pattern: str) -> None:
        self.tag_pattern = tag_pattern
        super().__init__(f"No matching git tags found for pattern '{tag_pattern}'")


class ManifestNotFoundError(ManifestError):
    """No supported project manifest was found."""


# =============================================================================
# Git and remote errors
# =============================================================================


class GitError(TagflowError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        self.stderr = stderr
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class TagDerivationError(TagflowError):
    """No tag name matching the tag pattern could be derived for a version."""


class ReleaseApiError(TagflowError):
    """A call to the release API failed.

    Carries the operation (``list``, ``create``, ``update``, ``delete``) and
    the tag it targeted so automation can report exactly what broke.
    """

    def __init__(
        self,
        operation: str,
        tag_name: str | None,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.detail = detail
        self.tag_name = tag_name
        self.status_code = status_code
        action = _OPERATION_LABELS.get(operation, operation)
        target = f" '{tag_name}'" if tag_name else "s"
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"GitHub API error while {action} release{target}{status}: {detail}")


_OPERATION_LABELS = {
    "list": "listing",
    "create": "creating",
    "update": "updating",
    "delete": "deleting",
}
