"""GitHub releases REST client.

Each method is a single blocking request on a shared :class:`requests.Session`.
Non-2xx responses raise :class:`~tagflow.exceptions.ReleaseApiError` naming
the operation and the tag it targeted. There are no retries.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

import requests

from tagflow import __version__
from tagflow.config.models import DEFAULT_API_URL
from tagflow.core.release import ExistingRelease
from tagflow.exceptions import ReleaseApiError

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"

_GITHUB_URL = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")
_CARGO_REPOSITORY = re.compile(r'^\s*repository\s*=\s*"(?P<url>[^"]+)"\s*$', re.MULTILINE)


def parse_github_repo_from_url(url: str) -> tuple[str, str] | None:
    """``(owner, repo)`` from an https or ssh GitHub URL."""
    match = _GITHUB_URL.search(url.strip())
    if match is None:
        return None
    return match.group("owner"), match.group("repo")


def detect_owner_repo_from_files(root: Path) -> tuple[str, str] | None:
    """Look for a GitHub repository URL in Cargo.toml or package.json."""
    cargo = root / "Cargo.toml"
    if cargo.is_file():
        match = _CARGO_REPOSITORY.search(cargo.read_text(encoding="utf-8"))
        if match:
            parsed = parse_github_repo_from_url(match.group("url"))
            if parsed:
                return parsed

    package_json = root / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.debug("Ignoring unparsable %s", package_json)
            return None
        repository = data.get("repository") if isinstance(data, dict) else None
        if isinstance(repository, dict):
            repository = repository.get("url")
        if isinstance(repository, str):
            return parse_github_repo_from_url(repository)

    return None


class GitHubReleaseClient:
    """Release store backed by the GitHub REST API.

    Args:
        token: Bearer token with ``contents: write`` permission
        api_url: API base URL (GitHub Enterprise uses ``https://host/api/v3``)
        timeout: Per-request timeout in seconds
        session: Optional pre-configured session (mainly for tests)
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": f"tagflow/{__version__}",
            }
        )

    def _releases_url(self, owner: str, repo: str, release_id: int | None = None) -> str:
        url = f"{self.api_url}/repos/{owner}/{repo}/releases"
        return url if release_id is None else f"{url}/{release_id}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        tag_name: str | None,
        **kwargs: object,
    ) -> requests.Response:
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ReleaseApiError(operation, tag_name, str(e)) from e

        if not response.ok:
            raise ReleaseApiError(operation, tag_name, _error_detail(response), response.status_code)
        return response

    def list_releases(self, owner: str, repo: str) -> list[ExistingRelease]:
        """All releases of ``owner/repo``, following pagination."""
        releases: list[ExistingRelease] = []
        url: str | None = self._releases_url(owner, repo)
        params: dict[str, int] | None = {"per_page": 100}

        while url:
            response = self._request("GET", url, operation="list", tag_name=None, params=params)
            try:
                items = response.json()
            except ValueError as e:
                raise ReleaseApiError("list", None, "Failed to parse GitHub release list") from e

            releases.extend(
                ExistingRelease(
                    id=item["id"],
                    tag_name=item["tag_name"],
                    name=item.get("name"),
                    body=item.get("body"),
                )
                for item in items
            )
            # The "next" link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        return releases

    def create_release(self, owner: str, repo: str, payload: dict[str, object]) -> None:
        self._request(
            "POST",
            self._releases_url(owner, repo),
            operation="create",
            tag_name=str(payload["tag_name"]),
            json=payload,
        )

    def update_release(self, owner: str, repo: str, release_id: int, payload: dict[str, object]) -> None:
        self._request(
            "PATCH",
            self._releases_url(owner, repo, release_id),
            operation="update",
            tag_name=str(payload["tag_name"]),
            json=payload,
        )

    def delete_release(self, owner: str, repo: str, release_id: int) -> None:
        self._request(
            "DELETE",
            self._releases_url(owner, repo, release_id),
            operation="delete",
            tag_name=None,
        )


def _error_detail(response: requests.Response) -> str:
    try:
        message = response.json().get("message")
    except (ValueError, AttributeError):
        message = None
    return message or response.reason or "request failed"
