"""Turning a changeset into a commit."""

import json
import logging
import time

from gh import CommitOptions, GitCommit, GitHubClient, TreeEntry, create_commit
from gh.signing import Signer

from .config import GitHubFileConfig
from .errors import CommitFailedError
from .models import FileKey

logger = logging.getLogger(__name__)

CREATE_MESSAGE = "Create %s."
UPDATE_MESSAGE = "Update %s."
DELETE_MESSAGE = "Delete %s."

MAX_RETRIES = 3
RETRY_BACKOFF = 5.0  # seconds
STAGING_BRANCH_PREFIX = "githubfile"


def quote(value: str) -> str:
    """Double-quote ``value`` with backslash escapes."""
    return json.dumps(value, ensure_ascii=False)


def format_commit_message(prefix: str, template: str, path: str) -> str:
    """
    Render a commit message.

    >>> format_commit_message("[infra] ", CREATE_MESSAGE, "a/b.txt")
    '[infra] Create "a/b.txt".'
    """
    message = template % quote(path)
    prefix = prefix.strip()
    if not prefix:
        return message
    return f"{prefix} {message}"


def staging_branch_name() -> str:
    """Unique scratch branch name for one commit invocation."""
    return f"{STAGING_BRANCH_PREFIX}-{time.time_ns()}"


class CommitDispatcher:
    """Commit changesets to a file's branch as the configured identity."""

    def __init__(
        self,
        client: GitHubClient,
        config: GitHubFileConfig,
        signer: Signer | None = None,
    ):
        self.client = client
        self.config = config
        self.signer = signer

    def commit(
        self,
        key: FileKey,
        changes: list[TreeEntry],
        template: str,
        base_tree: str | None = None,
    ) -> GitCommit:
        """
        Commit ``changes`` to the branch of ``key``.

        Retrying is left to ``gh.create_commit`` (3 attempts, 5 s apart).

        Raises:
            CommitFailedError: Every attempt failed; the last error is attached
        """
        message = format_commit_message(self.config.commit_message_prefix, template, key.path)
        options = CommitOptions(
            repo_owner=key.repository_owner,
            repo_name=key.repository_name,
            branch=key.branch,
            commit_message=message,
            changes=changes,
            username=self.config.github_username,
            email=self.config.github_email,
            gpg_private_key=self.config.gpg_secret_key,
            gpg_passphrase=self.config.gpg_passphrase,
            base_tree_override=base_tree,
            pull_request_source_branch_name=staging_branch_name(),
            max_retries=MAX_RETRIES,
            retry_backoff=RETRY_BACKOFF,
        )
        logger.info("Committing %d change(s) to %s: %s", len(changes), key.to_id(), message)
        try:
            return create_commit(self.client, options, signer=self.signer)
        except Exception as e:
            raise CommitFailedError("failed to create commit", path=key.path, cause=e) from e
