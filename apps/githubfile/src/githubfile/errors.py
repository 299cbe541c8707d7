"""Errors raised while reconciling a managed file."""


class GitHubFileError(Exception):
    """Base exception for file reconciliation errors.

    ``operation`` and ``path`` are filled in by the reconciler so that every
    failure names what was being done, to which file, and why.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        operation: str | None = None,
        cause: BaseException | None = None,
    ):
        self.message = message
        self.path = path
        self.operation = operation
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        prefix = " ".join(
            part
            for part in (self.operation, f'"{self.path}"' if self.path else None)
            if part
        )
        text = f"{prefix}: {self.message}" if prefix else self.message
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text


class NotFoundError(GitHubFileError):
    """The file (or the repository or branch holding it) does not exist."""

    pass


class FormatError(GitHubFileError, ValueError):
    """A file id could not be parsed."""

    pass


class TransportError(GitHubFileError):
    """Any remote failure other than absence."""

    pass


class CommitFailedError(GitHubFileError):
    """Every commit attempt failed."""

    pass


class ImmutableFieldError(GitHubFileError):
    """An update tried to change the owner, repository, branch or path."""

    pass


class ConfigurationError(GitHubFileError):
    """Provider configuration is missing or invalid."""

    pass
