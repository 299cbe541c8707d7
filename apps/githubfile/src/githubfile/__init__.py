"""Manage a single file in a GitHub repository through signed commits."""

from .config import GitHubFileConfig, load_config
from .errors import (
    CommitFailedError,
    ConfigurationError,
    FormatError,
    GitHubFileError,
    ImmutableFieldError,
    NotFoundError,
    TransportError,
)
from .identifier import decode_file_id, encode_file_id
from .models import FileKey, ManagedFile, ObservedFile
from .reconciler import FileReconciler
from .tree import remove_from_tree

__all__ = [
    "FileReconciler",
    "FileKey",
    "ManagedFile",
    "ObservedFile",
    "GitHubFileConfig",
    "load_config",
    "encode_file_id",
    "decode_file_id",
    "remove_from_tree",
    "GitHubFileError",
    "NotFoundError",
    "FormatError",
    "TransportError",
    "CommitFailedError",
    "ImmutableFieldError",
    "ConfigurationError",
]
