"""Managed file value objects."""

from pydantic import BaseModel, ConfigDict, Field

from .identifier import decode_file_id, encode_file_id

KEY_FIELDS = {"repository_owner", "repository_name", "branch", "path"}


class FileKey(BaseModel):
    """Identity of a managed file."""

    model_config = ConfigDict(frozen=True)

    repository_owner: str = Field(..., description="Owner of the repository holding the file")
    repository_name: str = Field(..., description="Name of the repository holding the file")
    branch: str = Field(..., description="Branch the file is committed to")
    path: str = Field(..., description="Slash-separated path of the file")

    @classmethod
    def from_id(cls, value: str) -> "FileKey":
        """Build a key from an external file id."""
        owner, repo, branch, path = decode_file_id(value)
        return cls(repository_owner=owner, repository_name=repo, branch=branch, path=path)

    def to_id(self) -> str:
        return encode_file_id(self.repository_owner, self.repository_name, self.branch, self.path)

    @property
    def repository(self) -> str:
        return f"{self.repository_owner}/{self.repository_name}"

    @property
    def key(self) -> "FileKey":
        """The bare key, without any state a subclass carries."""
        return FileKey(**self.model_dump(include=KEY_FIELDS))


class ManagedFile(FileKey):
    """Desired state of a managed file."""

    contents: str = Field(default="", description="Text contents of the file")


class ObservedFile(ManagedFile):
    """State of a managed file as last read from GitHub."""

    id: str = Field(..., description="External id, <owner>/<repo>:<branch>:<path>")

    @classmethod
    def observe(cls, key: FileKey, contents: str) -> "ObservedFile":
        return cls(**key.model_dump(include=KEY_FIELDS), contents=contents, id=key.to_id())
