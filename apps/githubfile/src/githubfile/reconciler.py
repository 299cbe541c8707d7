"""Create, read, update, delete and import of a managed file."""

import logging
from contextlib import contextmanager
from typing import Iterator

from gh import GitHubClient, TreeEntry
from gh.client import DEFAULT_MAX_RETRIES
from gh.signing import Signer

from .config import GitHubFileConfig
from .dispatcher import CREATE_MESSAGE, DELETE_MESSAGE, UPDATE_MESSAGE, CommitDispatcher
from .errors import GitHubFileError, ImmutableFieldError, NotFoundError, TransportError
from .models import FileKey, ManagedFile, ObservedFile
from .reader import github_errors, read_file
from .tree import remove_from_tree

logger = logging.getLogger(__name__)


@contextmanager
def _operation(name: str, path: str) -> Iterator[None]:
    """Stamp errors escaping the block with the operation and path."""
    try:
        yield
    except GitHubFileError as e:
        if e.operation is None:
            e.operation = name
        if e.path is None:
            e.path = path
        raise


class FileReconciler:
    """
    Converge one file on one branch to its declared state.

    Each method is a complete, independent unit of work: it takes immutable
    snapshots and returns a new one, keeping nothing between calls.
    """

    def __init__(
        self,
        client: GitHubClient,
        config: GitHubFileConfig,
        signer: Signer | None = None,
    ):
        self.client = client
        self.config = config
        self.dispatcher = CommitDispatcher(client, config, signer=signer)

    @classmethod
    def from_config(
        cls,
        config: GitHubFileConfig,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = 30.0,
    ) -> "FileReconciler":
        """Build a reconciler with its own GitHub client."""
        client = GitHubClient(
            token=config.github_token,
            base_url=config.base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        return cls(client, config)

    def create(self, desired: ManagedFile) -> ObservedFile:
        """Commit the file and return it as read back from the branch."""
        with _operation("create", desired.path):
            self._commit_contents(desired, CREATE_MESSAGE)
            return self._observe(desired.key)

    def read(self, key: FileKey) -> ObservedFile | None:
        """
        Read the file's current state.

        Returns:
            The observed file, or None when it no longer exists and should be
            dropped from tracked state
        """
        with _operation("read", key.path):
            try:
                return self._observe(key)
            except NotFoundError:
                logger.info("%s not found, removing it from state", key.to_id())
                return None

    def update(self, desired: ManagedFile, previous: FileKey | None = None) -> ObservedFile:
        """
        Commit the desired contents and return the file as read back.

        The full contents are always committed, even when they equal the
        previous state.

        Raises:
            ImmutableFieldError: ``previous`` names a different file
        """
        with _operation("update", desired.path):
            if previous is not None and previous.key != desired.key:
                raise ImmutableFieldError(
                    f"cannot move {previous.to_id()} to {desired.to_id()}; "
                    "owner, repository, branch and path require replacement"
                )
            self._commit_contents(desired, UPDATE_MESSAGE)
            return self._observe(desired.key)

    def delete(self, key: FileKey) -> None:
        """
        Remove the file from its branch.

        Nothing is done when the repository is archived or the file is
        already gone.
        """
        with _operation("delete", key.path):
            with github_errors(f"failed to retrieve repository {key.repository}"):
                repository = self.client.get_repository(key.repository_owner, key.repository_name)
            if repository.archived:
                logger.warning(
                    "Repository %s is archived, skipping deletion of %s",
                    key.repository,
                    key.path,
                )
                return

            try:
                read_file(self.client, key)
            except NotFoundError:
                logger.info("%s already absent, nothing to delete", key.to_id())
                return

            with github_errors(f"failed to resolve tree of branch {key.branch}"):
                head_sha = self.client.get_branch_sha(key.repository_owner, key.repository_name, key.branch)
                tree_sha = self.client.get_commit(key.repository_owner, key.repository_name, head_sha).tree.sha
                tree = self.client.get_tree(key.repository_owner, key.repository_name, tree_sha, recursive=True)
            if tree.truncated:
                raise TransportError(f"tree {tree_sha} is too large to list recursively")

            changes = remove_from_tree(tree.tree, key.path)
            logger.debug("Tree %s: keeping %d of %d entries", tree_sha, len(changes), len(tree.tree))
            self.dispatcher.commit(key, changes, DELETE_MESSAGE, base_tree=tree_sha)

    def import_file(self, file_id: str) -> ObservedFile:
        """
        Start managing an existing file.

        Raises:
            FormatError: ``file_id`` is malformed
            NotFoundError: The file does not exist
        """
        with _operation("import", file_id):
            key = FileKey.from_id(file_id)
            return self._observe(key)

    def _commit_contents(self, desired: ManagedFile, template: str) -> None:
        entry = TreeEntry(path=desired.path, mode="100644", type="blob", content=desired.contents)
        self.dispatcher.commit(desired.key, [entry], template)

    def _observe(self, key: FileKey) -> ObservedFile:
        return ObservedFile.observe(key, read_file(self.client, key))
