"""Shared pytest fixtures for githubfile tests."""

import time

import pytest
from gh import (
    GitCommit,
    GitHubAPIError,
    GitHubFile,
    GitHubNotFoundError,
    PullRequest,
    Reference,
    Repository,
    Tree,
    TreeEntry,
)
from gh.models import ObjectRef

from githubfile import FileReconciler, GitHubFileConfig

FAKE_SIGNATURE = "-----BEGIN PGP SIGNATURE-----\n\nfake\n-----END PGP SIGNATURE-----"


class FakeGitHub:
    """
    In-memory stand-in for GitHubClient holding one repository.

    Trees are stored flat (path -> blob entry); recursive listings
    synthesize the intermediate ``tree`` entries the way GitHub returns them.
    """

    def __init__(self, owner="o", repo="r", branch="main", files=None, archived=False):
        self.owner = owner
        self.repo = repo
        self.archived = archived
        self.truncated = False
        self.protected: set[str] = set()
        self.blobs: dict[str, str] = {}
        self.trees: dict[str, dict[str, TreeEntry]] = {}
        self.commits: dict[str, GitCommit] = {}
        self.refs: dict[str, str] = {}
        self.pull_requests: dict[int, dict] = {}
        self.signatures: dict[str, str | None] = {}
        self.calls: list[str] = []
        self.failures: dict[str, list[Exception]] = {}
        self._counter = 0

        tree = self._store_tree({path: self._blob(path, text) for path, text in (files or {}).items()})
        self.refs[branch] = self._store_commit("Initial commit", tree, []).sha

    # ---- helpers ----

    def _sha(self) -> str:
        self._counter += 1
        return f"{self._counter:040x}"

    def _blob(self, path: str, text: str) -> TreeEntry:
        sha = self._sha()
        self.blobs[sha] = text
        return TreeEntry(path=path, mode="100644", type="blob", sha=sha, size=len(text))

    def _store_tree(self, files: dict[str, TreeEntry]) -> str:
        sha = self._sha()
        self.trees[sha] = dict(files)
        return sha

    def _store_commit(self, message: str, tree: str, parents: list[str]) -> GitCommit:
        commit = GitCommit(
            sha=self._sha(),
            message=message,
            tree=ObjectRef(sha=tree),
            parents=[ObjectRef(sha=p) for p in parents],
        )
        self.commits[commit.sha] = commit
        return commit

    def _record(self, name: str, owner: str, repo: str) -> None:
        self.calls.append(name)
        pending = self.failures.get(name)
        if pending:
            raise pending.pop(0)
        if (owner, repo) != (self.owner, self.repo):
            raise GitHubNotFoundError()

    def fail(self, name: str, *errors: Exception) -> None:
        """Make the next calls to ``name`` raise ``errors`` in order."""
        self.failures.setdefault(name, []).extend(errors)

    def files(self, branch: str = "main") -> dict[str, str]:
        """Current file contents of a branch."""
        tree = self.commits[self.refs[branch]].tree.sha
        return {path: self.blobs[entry.sha] for path, entry in self.trees[tree].items()}

    def head(self, branch: str = "main") -> GitCommit:
        return self.commits[self.refs[branch]]

    def push(self, changes: dict[str, str | None], branch: str = "main") -> GitCommit:
        """Commit directly to a branch, as a concurrent writer would."""
        files = dict(self.trees[self.head(branch).tree.sha])
        for path, text in changes.items():
            if text is None:
                files.pop(path, None)
            else:
                files[path] = self._blob(path, text)
        commit = self._store_commit("concurrent", self._store_tree(files), [self.refs[branch]])
        self.refs[branch] = commit.sha
        return commit

    # ---- GitHubClient surface ----

    def get_repository(self, owner, repo):
        self._record("get_repository", owner, repo)
        return Repository(name=repo, full_name=f"{owner}/{repo}", archived=self.archived)

    def get_file_content(self, owner, repo, path, ref="master"):
        self._record("get_file_content", owner, repo)
        if ref not in self.refs:
            raise GitHubNotFoundError(f"No commit found for the ref {ref}")
        entry = self.trees[self.head(ref).tree.sha].get(path)
        if entry is None:
            raise GitHubNotFoundError()
        return GitHubFile(
            name=path.rsplit("/", 1)[-1],
            path=path,
            sha=entry.sha,
            size=entry.size or 0,
            content=self.blobs[entry.sha],
        )

    def get_branch_sha(self, owner, repo, branch):
        self._record("get_branch_sha", owner, repo)
        if branch not in self.refs:
            raise GitHubNotFoundError()
        return self.refs[branch]

    def get_commit(self, owner, repo, sha):
        self._record("get_commit", owner, repo)
        return self.commits[sha]

    def get_tree(self, owner, repo, sha, recursive=False):
        self._record("get_tree", owner, repo)
        files = self.trees[sha]
        entries: dict[str, TreeEntry] = {}
        for path, entry in files.items():
            parts = path.split("/")
            for depth in range(1, len(parts)):
                directory = "/".join(parts[:depth])
                entries.setdefault(directory, TreeEntry(path=directory, mode="040000", type="tree", sha=self._sha()))
            entries[path] = entry
        if not recursive:
            entries = {path: entry for path, entry in entries.items() if "/" not in path}
        return Tree(sha=sha, tree=[entries[path] for path in sorted(entries)], truncated=self.truncated)

    def create_tree(self, owner, repo, entries, base_tree=None):
        self._record("create_tree", owner, repo)
        files = dict(self.trees[base_tree]) if base_tree else {}
        for entry in entries:
            if entry.type == "tree":
                raise GitHubAPIError(422, f"unexpected tree entry {entry.path}")
            if entry.content is not None:
                files[entry.path] = self._blob(entry.path, entry.content)
            elif entry.sha is None:
                files.pop(entry.path, None)
            else:
                files[entry.path] = entry
        return Tree(sha=self._store_tree(files))

    def create_commit(self, owner, repo, message, tree, parents, author=None, signature=None):
        self._record("create_commit", owner, repo)
        commit = self._store_commit(message, tree, parents)
        commit = commit.model_copy(update={"author": author})
        self.commits[commit.sha] = commit
        self.signatures[commit.sha] = signature
        return commit

    def update_ref(self, owner, repo, branch, sha, force=False):
        self._record("update_ref", owner, repo)
        if branch in self.protected:
            raise GitHubAPIError(422, f"Protected branch update failed for refs/heads/{branch}.")
        parents = [p.sha for p in self.commits[sha].parents]
        if not force and self.refs.get(branch) not in parents:
            raise GitHubAPIError(422, "Update is not a fast forward")
        self.refs[branch] = sha
        return Reference(ref=f"refs/heads/{branch}", target=ObjectRef(sha=sha))

    def create_ref(self, owner, repo, branch, sha):
        self._record("create_ref", owner, repo)
        if branch in self.refs:
            raise GitHubAPIError(422, "Reference already exists")
        self.refs[branch] = sha
        return Reference(ref=f"refs/heads/{branch}", target=ObjectRef(sha=sha))

    def delete_ref(self, owner, repo, branch):
        self._record("delete_ref", owner, repo)
        if self.refs.pop(branch, None) is None:
            raise GitHubNotFoundError()

    def create_pull_request(self, owner, repo, title, head, base, body=""):
        self._record("create_pull_request", owner, repo)
        number = len(self.pull_requests) + 1
        self.pull_requests[number] = {"title": title, "head": head, "base": base, "body": body, "merged": False}
        return PullRequest(number=number)

    def merge_pull_request(self, owner, repo, number, merge_method="rebase"):
        self._record("merge_pull_request", owner, repo)
        pull_request = self.pull_requests[number]
        self.refs[pull_request["base"]] = self.refs[pull_request["head"]]
        pull_request["merged"] = True


class FakeSigner:
    """Signer recording the payloads it was asked to sign."""

    def __init__(self):
        self.payloads: list[str] = []

    def sign(self, payload: str) -> str:
        self.payloads.append(payload)
        return FAKE_SIGNATURE


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Record retry sleeps instead of waiting."""
    recorded: list[float] = []
    monkeypatch.setattr(time, "sleep", recorded.append)
    return recorded


@pytest.fixture
def github():
    """Repository o/r with a couple of files on main."""
    return FakeGitHub(files={"README.md": "# repo\n", "docs/guide.md": "guide\n", "docs/api/index.md": "api\n"})


@pytest.fixture
def config():
    return GitHubFileConfig(
        github_token="test-token",
        github_email="bot@example.com",
        github_username="bot",
        commit_message_prefix="[infra]",
    )


@pytest.fixture
def reconciler(github, config):
    return FileReconciler(github, config)
