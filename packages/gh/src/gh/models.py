"""GitHub API data models."""

import base64
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """Repository metadata."""

    name: str
    full_name: str
    archived: bool = False
    default_branch: str | None = None


class GitHubContent(BaseModel):
    """GitHub content item (file or directory)."""

    name: str
    path: str
    sha: str
    size: int
    html_url: str | None = None
    download_url: str | None = None
    type: Literal["file", "dir", "symlink", "submodule"]
    content: str | None = None  # Base64 encoded content for files
    encoding: str | None = None  # "base64", or "none" above 1 MB

    def decoded_content(self) -> str | None:
        """Decode inline content, or None when the API left it out."""
        if self.encoding != "base64" or self.content is None:
            return None
        return base64.b64decode(self.content).decode("utf-8")


class GitHubFile(BaseModel):
    """GitHub file with decoded content."""

    name: str
    path: str
    sha: str
    size: int
    html_url: str | None = None
    content: str
    encoding: str = "utf-8"


class TreeEntry(BaseModel):
    """Git tree entry.

    A blob entry either references an existing object by ``sha`` or carries
    new ``content``; a blob entry with neither deletes the path.
    """

    path: str
    mode: str = "100644"
    type: Literal["blob", "tree", "commit"] = "blob"
    sha: str | None = None
    content: str | None = None
    size: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the create-tree endpoint."""
        payload: dict[str, Any] = {"path": self.path, "mode": self.mode, "type": self.type}
        if self.content is not None:
            payload["content"] = self.content
        else:
            payload["sha"] = self.sha
        return payload


class Tree(BaseModel):
    """Git tree."""

    sha: str
    tree: list[TreeEntry] = Field(default_factory=list)
    truncated: bool = False


class CommitAuthor(BaseModel):
    """Author or committer identity."""

    name: str
    email: str
    date: datetime | None = None


class ObjectRef(BaseModel):
    """Reference to a git object by SHA."""

    sha: str
    type: str | None = None


class GitCommit(BaseModel):
    """Git commit object."""

    sha: str
    message: str = ""
    tree: ObjectRef
    parents: list[ObjectRef] = Field(default_factory=list)
    author: CommitAuthor | None = None


class Reference(BaseModel):
    """Git reference (``refs/heads/...``)."""

    model_config = ConfigDict(populate_by_name=True)

    ref: str
    target: ObjectRef = Field(alias="object")


class PullRequest(BaseModel):
    """Pull request."""

    number: int
    state: str = "open"
    html_url: str | None = None
