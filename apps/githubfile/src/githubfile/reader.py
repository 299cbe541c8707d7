"""Reading a managed file back from GitHub."""

import binascii
import logging
from contextlib import contextmanager
from typing import Iterator

import httpx
from gh import GitHubClient, GitHubError, GitHubNotFoundError

from .errors import NotFoundError, TransportError
from .models import FileKey

logger = logging.getLogger(__name__)


@contextmanager
def github_errors(message: str, path: str | None = None) -> Iterator[None]:
    """Translate client errors: 404 becomes NotFoundError, the rest TransportError."""
    try:
        yield
    except GitHubNotFoundError as e:
        raise NotFoundError(f"{message}: not found", path=path, cause=e) from e
    except (GitHubError, httpx.HTTPError) as e:
        raise TransportError(message, path=path, cause=e) from e


def read_file(client: GitHubClient, key: FileKey) -> str:
    """
    Fetch the current contents of a file on its branch.

    Raises:
        NotFoundError: The file is absent on the branch
        TransportError: Any other failure
    """
    logger.debug("Reading %s from %s", key.path, key.to_id())
    try:
        with github_errors("failed to read file", path=key.path):
            handle = client.get_file_content(
                key.repository_owner, key.repository_name, key.path, ref=key.branch
            )
    except NotFoundError:
        raise NotFoundError("file not found", path=key.path) from None
    except (binascii.Error, UnicodeDecodeError) as e:
        raise TransportError("file content is not base64-encoded UTF-8", path=key.path, cause=e) from e
    return handle.content
