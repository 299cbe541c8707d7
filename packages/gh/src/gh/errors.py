"""GitHub API errors."""


class GitHubError(Exception):
    """Base exception for GitHub client errors."""

    pass


class GitHubAPIError(GitHubError):
    """Raised when the GitHub API answers with a non-success status."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        self.message = message
        super().__init__(f"GitHub API error {status_code}: {message or 'no message'}")

    @property
    def is_protected_branch(self) -> bool:
        """Whether the error is a rejected push to a protected branch."""
        return self.status_code in (403, 422) and "protected branch" in self.message.lower()


class GitHubNotFoundError(GitHubAPIError):
    """Raised when the requested object does not exist."""

    def __init__(self, message: str = "Not Found"):
        super().__init__(404, message)


class GitHubServerError(GitHubAPIError):
    """Raised on 5xx responses so they can be retried."""

    pass


class StaleTreeError(GitHubError):
    """Raised when a branch moved away from the tree a commit was built against."""

    def __init__(self, branch: str, expected: str, actual: str):
        self.branch = branch
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"branch {branch!r} tree is {actual}, expected {expected}"
        )


class SigningError(GitHubError):
    """Raised when a commit could not be GPG-signed."""

    pass
