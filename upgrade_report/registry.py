"""Package registry resolution.

Maps a package name to the GitHub repository its releases are published
from. The parse_* functions are pure over the registry's response body;
RegistryClient does the HTTP work (Packagist, npm and the GitHub releases
API) using httpx.
"""

from __future__ import annotations

import json
import re
from urllib.parse import quote

import httpx

from .models import PackageSource, Release
from .policy import WritePolicy
from .shell import info

PACKAGIST_URL = "https://repo.packagist.org/p2/{package}.json"
NPM_URL = "https://registry.npmjs.org/{package}"
GITHUB_API_BASE = "https://api.github.com"
RELEASES_PER_PAGE = 100
MAX_RELEASE_PAGES = 10

GITHUB_URL_PATTERN = re.compile(
    r"github\.com[/:](?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?(?:[/#?]|$)"
)
SHORTHAND_PATTERN = re.compile(r"^(?:github:)?(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+)$")
_V_TAG = re.compile(r"^v\d")


def vendor_name(package: str) -> str:
    """Return the vendor (top-level namespace) of a package identifier.

    Examples:
        "vendor/package" → "vendor"
        "@scope/package" → "@scope"
        "package" → "package"
    """
    return package.split("/", 1)[0]


def github_api_headers(token: str | None = None) -> dict[str, str]:
    """Build GitHub REST API request headers, authenticated when a token is given."""
    headers = {"Accept": "application/vnd.github.v3+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def github_slug(url: str) -> str | None:
    """Extract "owner/repo" from any GitHub URL form, or None for other hosts."""
    match = GITHUB_URL_PATTERN.search(url)
    if not match:
        return None
    return f"{match['owner']}/{match['repo']}"


def _load_json(body: str) -> object | None:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return None


def parse_packagist_response(body: str, package: str) -> PackageSource | None:
    """Resolve a package's source from a Packagist ``/p2/`` response.

    The response maps package names to a list of version entries, newest
    first. ``source.url`` wins when it is on GitHub; otherwise the slug is
    taken from ``support.issues`` (or ``support.source``).

    Returns:
        The package source, or None when the body is not JSON, the package
        is missing, or no GitHub repository can be found.
    """
    data = _load_json(body)
    if not isinstance(data, dict):
        return None
    packages = data.get("packages")
    if not isinstance(packages, dict):
        return None
    entries = packages.get(package)
    if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
        return None

    newest = entries[0]
    candidates: list[str] = []
    source = newest.get("source")
    if isinstance(source, dict) and isinstance(source.get("url"), str):
        candidates.append(source["url"])
    support = newest.get("support")
    if isinstance(support, dict):
        candidates.extend(
            support[key] for key in ("issues", "source") if isinstance(support.get(key), str)
        )

    repo = next((slug for slug in map(github_slug, candidates) if slug), None)
    if repo is None:
        return None

    version = newest.get("version")
    tag_prefix = "v" if isinstance(version, str) and _V_TAG.match(version) else ""
    return PackageSource(repo=repo, tag_prefix=tag_prefix)


def parse_npm_response(body: str) -> PackageSource | None:
    """Resolve a package's source from an npm registry document.

    Understands ``repository`` as an object with a ``url`` or as a string,
    including the ``github:owner/repo`` and ``owner/repo`` shorthands.
    npm packages conventionally tag releases as ``v1.2.3``.
    """
    data = _load_json(body)
    if not isinstance(data, dict):
        return None

    repository = data.get("repository")
    if isinstance(repository, dict):
        repository = repository.get("url")
    if not isinstance(repository, str):
        return None

    shorthand = SHORTHAND_PATTERN.match(repository)
    repo = f"{shorthand['owner']}/{shorthand['repo']}" if shorthand else github_slug(repository)
    if repo is None:
        return None
    return PackageSource(repo=repo, tag_prefix="v")


class RegistryClient:
    """Fetches registry metadata and GitHub releases over HTTP.

    Lookups are cached per package and per repository for the lifetime of
    the client, so each is fetched at most once per run.

    Args:
        token: GitHub token for the releases API (optional, raises rate limits).
        client: httpx client to use; one is created when omitted.
        policy: Retry policy for transient HTTP failures.
    """

    def __init__(
        self,
        token: str | None = None,
        client: httpx.Client | None = None,
        policy: WritePolicy | None = None,
    ) -> None:
        self._client = client or httpx.Client(timeout=30.0, follow_redirects=True)
        self._github_headers = github_api_headers(token)
        self._policy = policy or WritePolicy(retry_on=(httpx.TransportError, httpx.HTTPStatusError))
        self._sources: dict[str, PackageSource | None] = {}
        self._releases: dict[str, list[Release]] = {}

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, **kwargs) -> httpx.Response | None:
        """GET with retries; a 404 means "not found" and returns None."""

        def request() -> httpx.Response | None:
            response = self._client.get(url, **kwargs)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response

        return self._policy.call(request, url)

    def packagist_source(self, package: str) -> PackageSource | None:
        if package not in self._sources:
            response = self._get(PACKAGIST_URL.format(package=package))
            self._sources[package] = (
                parse_packagist_response(response.text, package) if response else None
            )
        return self._sources[package]

    def npm_source(self, package: str) -> PackageSource | None:
        if package not in self._sources:
            response = self._get(NPM_URL.format(package=quote(package, safe="@")))
            self._sources[package] = parse_npm_response(response.text) if response else None
        return self._sources[package]

    def releases(self, repo: str) -> list[Release]:
        """Fetch all releases of a GitHub repository, newest first."""
        if repo in self._releases:
            return self._releases[repo]

        releases: list[Release] = []
        for page in range(1, MAX_RELEASE_PAGES + 1):
            response = self._get(
                f"{GITHUB_API_BASE}/repos/{repo}/releases",
                params={"per_page": RELEASES_PER_PAGE, "page": page},
                headers=self._github_headers,
            )
            items = _load_json(response.text) if response else []
            if not isinstance(items, list):
                break
            for item in items:
                if isinstance(item, dict) and isinstance(item.get("tag_name"), str):
                    releases.append(Release.model_validate(item))
            if len(items) < RELEASES_PER_PAGE:
                break

        info(f"  {repo}: {len(releases)} release(s)")
        self._releases[repo] = releases
        return releases
