"""GitHub pull request metadata for commits."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Optional, Sequence

import requests

from tidings.config import GITHUB_API_URL, GITHUB_TOKEN, REMOTE_WORKERS, REQUEST_TIMEOUT
from tidings.errors import FetchError, retry_once
from tidings.models import Commit, RemoteConfig, RemoteInfo

logger = logging.getLogger(__name__)

# Status codes worth a second attempt
TRANSIENT_STATUS = {429, 500, 502, 503, 504}

# Status codes meaning the host does not know the commit
MISSING_STATUS = {404, 422}


class TransientHTTPError(Exception):
    """A retryable HTTP response."""

    pass


class GitHubClient:
    """Looks up the pull request associated with each commit.

    Uses ``GET /repos/{owner}/{repo}/commits/{sha}/pulls``. Lookups run
    concurrently; results are written back by position, so the output
    order always matches the input order.
    """

    def __init__(
        self,
        remote: RemoteConfig,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            remote: Owner and repository name
            token: API token (defaults to GITHUB_TOKEN)
            api_url: API base URL (defaults to TIDINGS_GITHUB_API_URL)
            max_workers: Concurrent lookups (defaults to TIDINGS_REMOTE_WORKERS)
            timeout: Per-request timeout in seconds
            session: requests session to use
        """
        if not remote.is_configured:
            raise ValueError("GitHub remote requires both owner and repo")

        self.remote = remote
        self.api_url = (api_url or GITHUB_API_URL).rstrip("/")
        self.max_workers = max_workers or REMOTE_WORKERS
        self.timeout = timeout or REQUEST_TIMEOUT

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        token = token or GITHUB_TOKEN
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _get(self, url: str) -> Optional[Any]:
        """GET a JSON document, retrying once on transient failure.

        Returns:
            Decoded JSON, or None if the resource does not exist

        Raises:
            FetchError: On a non-transient error or a failed retry
        """

        def attempt() -> requests.Response:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code in TRANSIENT_STATUS:
                raise TransientHTTPError(f"HTTP {response.status_code}")
            return response

        response = retry_once(
            attempt,
            (requests.ConnectionError, requests.Timeout, TransientHTTPError),
            url,
        )

        if response.status_code in MISSING_STATUS:
            return None
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e
        return response.json()

    def pull_request_for(self, sha: str) -> RemoteInfo:
        """Fetch the pull request metadata for one commit.

        Args:
            sha: Full commit hash

        Returns:
            RemoteInfo (empty when no pull request is associated)
        """
        url = f"{self.api_url}/repos/{self.remote.owner}/{self.remote.repo}/commits/{sha}/pulls"
        pulls = self._get(url)
        if not pulls:
            return RemoteInfo()

        # Prefer the merged pull request when several reference the commit
        pull = next((p for p in pulls if p.get("merged_at")), pulls[0])
        return RemoteInfo(
            pr_number=pull.get("number"),
            pr_title=pull.get("title"),
            username=(pull.get("user") or {}).get("login"),
            pr_labels=tuple(label.get("name", "") for label in pull.get("labels", [])),
        )

    def annotate(self, commits: Sequence[Commit]) -> list[Commit]:
        """Attach remote metadata to every commit.

        Args:
            commits: Commits in traversal order

        Returns:
            New commits carrying RemoteInfo, in the same order

        Raises:
            FetchError: If any lookup fails after its retry
        """
        if not commits:
            return []

        unique = list(dict.fromkeys(c.hash for c in commits))
        info: dict[str, RemoteInfo] = {}
        max_workers = min(self.max_workers, len(unique))

        logger.info("Fetching pull request metadata for %d commits", len(unique))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_sha = {
                executor.submit(self.pull_request_for, sha): sha for sha in unique
            }
            for future in as_completed(future_to_sha):
                info[future_to_sha[future]] = future.result()

        return [replace(commit, remote=info[commit.hash]) for commit in commits]
