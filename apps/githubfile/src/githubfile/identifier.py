"""Codec for the ``<owner>/<repo>:<branch>:<path>`` file id."""

from .errors import FormatError


def encode_file_id(owner: str, repo: str, branch: str, path: str) -> str:
    """Encode a file key as its external id."""
    return f"{owner}/{repo}:{branch}:{path}"


def decode_file_id(value: str) -> tuple[str, str, str, str]:
    """
    Decode an external file id.

    Args:
        value: Id of the form ``<owner>/<repo>:<branch>:<path>``

    Returns:
        (owner, repo, branch, path); empty parts are passed through

    Raises:
        FormatError: ``value`` does not have exactly three ``:``-separated
            parts, the first of which holds exactly one ``/``
    """
    parts = value.split(":")
    if len(parts) != 3:
        raise FormatError(f"failed to parse {value!r} as a file id")
    repository = parts[0].split("/")
    if len(repository) != 2:
        raise FormatError(f"failed to parse {value!r} as a file id")
    return repository[0], repository[1], parts[1], parts[2]
