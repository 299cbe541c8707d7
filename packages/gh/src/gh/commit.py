"""Atomic single-commit creation on top of a branch."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_fixed

from .client import GitHubClient
from .errors import GitHubAPIError, StaleTreeError
from .models import CommitAuthor, GitCommit, TreeEntry
from .signing import GPGSigner, Signer, commit_payload

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_RETRIES = 3
DEFAULT_COMMIT_BACKOFF = 5.0  # seconds


@dataclass
class CommitOptions:
    """What to commit, where, and as whom."""

    repo_owner: str
    repo_name: str
    branch: str
    commit_message: str
    changes: list[TreeEntry]
    username: str
    email: str
    gpg_private_key: str = ""
    gpg_passphrase: str = ""
    # When set, ``changes`` is the complete listing of the new tree and the
    # branch head must still point at this tree.
    base_tree_override: str | None = None
    pull_request_source_branch_name: str = ""
    pull_request_body: str = ""
    max_retries: int = DEFAULT_COMMIT_RETRIES
    retry_backoff: float = DEFAULT_COMMIT_BACKOFF
    merge_method: str = "rebase"


def create_commit(
    client: GitHubClient,
    options: CommitOptions,
    signer: Signer | None = None,
) -> GitCommit:
    """
    Build a tree from ``options.changes``, commit it and advance the branch.

    Every attempt starts again from the current branch head. Any failure is
    retried up to ``options.max_retries`` attempts, ``options.retry_backoff``
    seconds apart; the last error is re-raised.

    Args:
        client: GitHub client
        options: Commit options
        signer: Signer to use instead of one built from ``options.gpg_private_key``

    Returns:
        The created commit
    """
    if signer is None and options.gpg_private_key:
        signer = GPGSigner(options.gpg_private_key, options.gpg_passphrase)

    retrying = Retrying(
        stop=stop_after_attempt(options.max_retries),
        wait=wait_fixed(options.retry_backoff),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(_attempt_commit, client, options, signer)


def _attempt_commit(
    client: GitHubClient, options: CommitOptions, signer: Signer | None
) -> GitCommit:
    owner, repo, branch = options.repo_owner, options.repo_name, options.branch

    head_sha = client.get_branch_sha(owner, repo, branch)
    head = client.get_commit(owner, repo, head_sha)

    if options.base_tree_override is not None:
        if head.tree.sha != options.base_tree_override:
            raise StaleTreeError(branch, options.base_tree_override, head.tree.sha)
        tree = client.create_tree(owner, repo, options.changes)
    else:
        tree = client.create_tree(owner, repo, options.changes, base_tree=head.tree.sha)

    author = CommitAuthor(
        name=options.username,
        email=options.email,
        date=datetime.now(timezone.utc).replace(microsecond=0),
    )
    signature = None
    if signer is not None:
        signature = signer.sign(commit_payload(tree.sha, [head_sha], author, options.commit_message))

    commit = client.create_commit(
        owner,
        repo,
        options.commit_message,
        tree.sha,
        [head_sha],
        author=author,
        signature=signature,
    )

    try:
        client.update_ref(owner, repo, branch, commit.sha, force=False)
    except GitHubAPIError as e:
        if not e.is_protected_branch or not options.pull_request_source_branch_name:
            raise
        logger.info("Branch %s is protected, merging %s through a pull request", branch, commit.sha)
        _merge_via_pull_request(client, options, commit)
    else:
        logger.info("Advanced %s/%s:%s to %s", owner, repo, branch, commit.sha)

    return commit


def _merge_via_pull_request(client: GitHubClient, options: CommitOptions, commit: GitCommit) -> None:
    """Stage ``commit`` on the scratch branch and merge it with a pull request."""
    owner, repo = options.repo_owner, options.repo_name
    staging = options.pull_request_source_branch_name

    client.create_ref(owner, repo, staging, commit.sha)
    try:
        pull_request = client.create_pull_request(
            owner,
            repo,
            title=options.commit_message,
            head=staging,
            base=options.branch,
            body=options.pull_request_body,
        )
        logger.info("Opened pull request #%d from %s", pull_request.number, staging)
        client.merge_pull_request(owner, repo, pull_request.number, merge_method=options.merge_method)
    finally:
        client.delete_ref(owner, repo, staging)
