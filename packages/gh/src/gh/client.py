"""GitHub API client."""

import logging
import os
import subprocess
from typing import Any, Iterable
from urllib.parse import quote

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from .errors import GitHubAPIError, GitHubError, GitHubNotFoundError, GitHubServerError
from .models import (
    CommitAuthor,
    GitCommit,
    GitHubContent,
    GitHubFile,
    PullRequest,
    Reference,
    Repository,
    Tree,
    TreeEntry,
)

logger = logging.getLogger(__name__)

# Retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_MIN_WAIT = 1  # seconds
DEFAULT_MAX_WAIT = 10  # seconds

# Retryable exceptions
RETRYABLE_EXCEPTIONS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.PoolTimeout,
    httpx.NetworkError,
    GitHubServerError,
)


def get_token_from_gh_cli() -> str | None:
    """
    Get GitHub token from gh cli.

    Returns:
        Token string or None if gh cli not available/authenticated
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            logger.info("Using token from gh cli")
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug("gh cli not available: %s", e)
    return None


def get_token(token: str | None = None, use_gh_cli: bool = False) -> str | None:
    """
    Get GitHub token from various sources.

    Priority:
    1. Explicitly provided token
    2. Environment variable GH_TOKEN / GITHUB_TOKEN
    3. gh cli (`gh auth token`) - only if use_gh_cli=True

    Args:
        token: Explicitly provided token
        use_gh_cli: Whether to use gh cli credentials (requires user consent)

    Returns:
        GitHub token or None
    """
    if token:
        logger.debug("Using explicitly provided token")
        return token

    env_token = os.environ.get("GH_TOKEN") or os.environ.get("GITHUB_TOKEN")
    if env_token:
        logger.info("Using token from environment variable")
        return env_token

    if use_gh_cli:
        return get_token_from_gh_cli()

    return None


def create_retry_decorator(max_retries: int = DEFAULT_MAX_RETRIES):
    """Create a retry decorator with specified max retries."""
    return retry(
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=1, min=DEFAULT_MIN_WAIT, max=DEFAULT_MAX_WAIT),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def raise_for_status(response: httpx.Response) -> None:
    """Translate an unsuccessful response into a GitHub error."""
    if response.is_success:
        return
    try:
        message = response.json().get("message", "")
    except ValueError:
        message = response.text
    if response.status_code == 404:
        raise GitHubNotFoundError(message or "Not Found")
    if response.status_code >= 500:
        logger.warning("Server error %d, will retry", response.status_code)
        raise GitHubServerError(response.status_code, message)
    raise GitHubAPIError(response.status_code, message)


class GitHubClient:
    """GitHub REST API client with retry support."""

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        use_gh_cli: bool = False,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token (optional)
            base_url: Custom base URL (defaults to GitHub API)
            timeout: Request timeout in seconds
            use_gh_cli: Use gh cli credentials (requires user consent)
            max_retries: Maximum number of retry attempts (default: 3)
            transport: Custom httpx transport (used by tests)
        """
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "githubfile",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        resolved_token = get_token(token, use_gh_cli=use_gh_cli)

        if resolved_token:
            self.headers["Authorization"] = f"token {resolved_token}"
            logger.debug("GitHub client initialized with token")
        else:
            logger.warning("GitHub client initialized without token (rate limited)")
        logger.info("GitHub client ready, base_url=%s, max_retries=%d", self.base_url, max_retries)

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, headers=self.headers, transport=self.transport)

    def _request(
        self, method: str, endpoint: str, **kwargs: Any
    ) -> httpx.Response:
        """Make HTTP request to GitHub API with retry."""
        url = f"{self.base_url}{endpoint}"

        @create_retry_decorator(self.max_retries)
        def do_request() -> httpx.Response:
            logger.debug("Request: %s %s", method, url)
            with self._client() as client:
                response = client.request(method, url, **kwargs)
                logger.debug(
                    "Response: %s %s (status=%d)",
                    method,
                    endpoint,
                    response.status_code,
                )
                raise_for_status(response)
                return response

        return do_request()

    def _download(self, url: str) -> str:
        """Download content from URL with retry."""
        @create_retry_decorator(self.max_retries)
        def do_download() -> str:
            logger.debug("Downloading: %s", url)
            with self._client() as client:
                response = client.get(url, headers={"Accept": "application/vnd.github.raw"})
                raise_for_status(response)
                return response.text

        return do_download()

    @staticmethod
    def _repo_endpoint(owner: str, repo: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

    # ---- Repositories ----

    def get_repository(self, owner: str, repo: str) -> Repository:
        """Get repository metadata."""
        logger.debug("Fetching repository: %s/%s", owner, repo)
        response = self._request("GET", self._repo_endpoint(owner, repo))
        return Repository(**response.json())

    # ---- Contents ----

    def get_contents(
        self, owner: str, repo: str, path: str = "", ref: str = "master"
    ) -> list[GitHubContent]:
        """
        Get repository contents.

        Args:
            owner: Repository owner
            repo: Repository name
            path: Path in repository (empty for root)
            ref: Branch/tag/commit (default: master)

        Returns:
            List of GitHubContent items
        """
        endpoint = f"{self._repo_endpoint(owner, repo)}/contents/{quote(path)}"
        params = {"ref": ref} if ref else {}
        logger.info("Fetching contents: %s/%s path=%s ref=%s", owner, repo, path, ref)
        response = self._request("GET", endpoint, params=params)
        data = response.json()

        if isinstance(data, dict):
            logger.debug("Single file response: %s", data.get("name"))
            return [GitHubContent(**data)]

        logger.debug("Directory listing: %d items", len(data))
        return [GitHubContent(**item) for item in data]

    def get_file_content(
        self, owner: str, repo: str, path: str, ref: str = "master"
    ) -> GitHubFile:
        """
        Get file content with decoded text.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path in repository
            ref: Branch/tag/commit (default: master)

        Returns:
            GitHubFile with decoded content

        Raises:
            GitHubNotFoundError: The path is absent on ``ref`` or is not a file
        """
        logger.info("Fetching file content: %s/%s path=%s", owner, repo, path)
        contents = self.get_contents(owner, repo, path, ref)
        if len(contents) != 1 or contents[0].path != path or contents[0].type != "file":
            logger.debug("Path is not a file: %s", path)
            raise GitHubNotFoundError(f"Path is not a file: {path}")

        content_item = contents[0]
        decoded = content_item.decoded_content()
        if decoded is None:
            # Files above 1 MB come back without inline content
            if not content_item.download_url:
                raise GitHubError(f"File has no content: {path}")
            logger.debug("Downloading from URL: %s", content_item.download_url)
            decoded = self._download(content_item.download_url)

        logger.debug("File content fetched: %s (%d bytes)", path, len(decoded))

        return GitHubFile(
            name=content_item.name,
            path=content_item.path,
            sha=content_item.sha,
            size=content_item.size,
            html_url=content_item.html_url,
            content=decoded,
        )

    # ---- Git data ----

    def get_branch_sha(self, owner: str, repo: str, branch: str) -> str:
        """Get the SHA of the commit a branch points at."""
        endpoint = f"{self._repo_endpoint(owner, repo)}/git/ref/heads/{quote(branch)}"
        response = self._request("GET", endpoint)
        sha = Reference(**response.json()).target.sha
        logger.debug("Branch %s/%s:%s is at %s", owner, repo, branch, sha)
        return sha

    def get_commit(self, owner: str, repo: str, sha: str) -> GitCommit:
        """Get a git commit object."""
        response = self._request("GET", f"{self._repo_endpoint(owner, repo)}/git/commits/{sha}")
        return GitCommit(**response.json())

    def get_tree(self, owner: str, repo: str, sha: str, recursive: bool = False) -> Tree:
        """
        Get a git tree.

        Args:
            owner: Repository owner
            repo: Repository name
            sha: Tree SHA
            recursive: Whether to list every nested entry

        Returns:
            Tree (check ``truncated`` for very large recursive listings)
        """
        params = {"recursive": "1"} if recursive else {}
        response = self._request(
            "GET", f"{self._repo_endpoint(owner, repo)}/git/trees/{sha}", params=params
        )
        tree = Tree(**response.json())
        logger.debug("Tree %s: %d entries (truncated=%s)", sha, len(tree.tree), tree.truncated)
        return tree

    def create_tree(
        self,
        owner: str,
        repo: str,
        entries: Iterable[TreeEntry],
        base_tree: str | None = None,
    ) -> Tree:
        """Create a git tree, optionally on top of ``base_tree``."""
        payload: dict[str, Any] = {"tree": [entry.to_payload() for entry in entries]}
        if base_tree:
            payload["base_tree"] = base_tree
        logger.debug("Creating tree with %d entries (base_tree=%s)", len(payload["tree"]), base_tree)
        response = self._request("POST", f"{self._repo_endpoint(owner, repo)}/git/trees", json=payload)
        return Tree(**response.json())

    def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        tree: str,
        parents: list[str],
        author: CommitAuthor | None = None,
        signature: str | None = None,
    ) -> GitCommit:
        """Create a git commit object (does not move any branch)."""
        payload: dict[str, Any] = {"message": message, "tree": tree, "parents": parents}
        if author is not None:
            payload["author"] = author.model_dump(mode="json", exclude_none=True)
            payload["committer"] = payload["author"]
        if signature:
            payload["signature"] = signature
        response = self._request("POST", f"{self._repo_endpoint(owner, repo)}/git/commits", json=payload)
        commit = GitCommit(**response.json())
        logger.info("Created commit %s on %s/%s", commit.sha, owner, repo)
        return commit

    def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> Reference:
        """Create ``refs/heads/<branch>`` pointing at ``sha``."""
        response = self._request(
            "POST",
            f"{self._repo_endpoint(owner, repo)}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        return Reference(**response.json())

    def update_ref(
        self, owner: str, repo: str, branch: str, sha: str, force: bool = False
    ) -> Reference:
        """Move ``refs/heads/<branch>`` to ``sha``."""
        response = self._request(
            "PATCH",
            f"{self._repo_endpoint(owner, repo)}/git/refs/heads/{quote(branch)}",
            json={"sha": sha, "force": force},
        )
        return Reference(**response.json())

    def delete_ref(self, owner: str, repo: str, branch: str) -> None:
        """Delete ``refs/heads/<branch>``."""
        self._request("DELETE", f"{self._repo_endpoint(owner, repo)}/git/refs/heads/{quote(branch)}")

    # ---- Pull requests ----

    def create_pull_request(
        self, owner: str, repo: str, title: str, head: str, base: str, body: str = ""
    ) -> PullRequest:
        """Open a pull request from ``head`` into ``base``."""
        response = self._request(
            "POST",
            f"{self._repo_endpoint(owner, repo)}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )
        return PullRequest(**response.json())

    def merge_pull_request(
        self, owner: str, repo: str, number: int, merge_method: str = "rebase"
    ) -> None:
        """Merge a pull request."""
        self._request(
            "PUT",
            f"{self._repo_endpoint(owner, repo)}/pulls/{number}/merge",
            json={"merge_method": merge_method},
        )
