"""GitHub API client utilities."""

from .client import GitHubClient, get_token
from .commit import CommitOptions, create_commit
from .errors import (
    GitHubAPIError,
    GitHubError,
    GitHubNotFoundError,
    GitHubServerError,
    SigningError,
    StaleTreeError,
)
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
from .signing import GPGSigner

__all__ = [
    "GitHubClient",
    "get_token",
    "CommitOptions",
    "create_commit",
    "GPGSigner",
    "GitHubError",
    "GitHubAPIError",
    "GitHubNotFoundError",
    "GitHubServerError",
    "SigningError",
    "StaleTreeError",
    "CommitAuthor",
    "GitCommit",
    "GitHubContent",
    "GitHubFile",
    "PullRequest",
    "Reference",
    "Repository",
    "Tree",
    "TreeEntry",
]
