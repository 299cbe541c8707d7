"""GPG commit signing."""

import logging
import tempfile
from typing import Protocol

import gnupg

from .errors import SigningError
from .models import CommitAuthor

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Anything that produces an ASCII-armored detached signature."""

    def sign(self, payload: str) -> str: ...


def format_identity(author: CommitAuthor) -> str:
    """Format ``name <email> <unix-time> +0000`` as git writes it."""
    timestamp = int(author.date.timestamp()) if author.date else 0
    return f"{author.name} <{author.email}> {timestamp} +0000"


def commit_payload(tree: str, parents: list[str], author: CommitAuthor, message: str) -> str:
    """
    Build the raw commit object GitHub will verify the signature against.

    The author doubles as committer, matching what ``GitHubClient.create_commit``
    sends.
    """
    lines = [f"tree {tree}"]
    lines.extend(f"parent {parent}" for parent in parents)
    identity = format_identity(author)
    lines.append(f"author {identity}")
    lines.append(f"committer {identity}")
    return "\n".join(lines) + "\n\n" + message


class GPGSigner:
    """Sign commit payloads with an ASCII-armored GPG secret key."""

    def __init__(self, secret_key: str, passphrase: str = "", gpg_binary: str = "gpg"):
        self.secret_key = secret_key
        self.passphrase = passphrase
        self.gpg_binary = gpg_binary

    def sign(self, payload: str) -> str:
        # The key is imported into a throwaway keyring for every signature.
        # GitHub verifies against the UTF-8 bytes of the commit object.
        with tempfile.TemporaryDirectory(prefix="gh-gpg-") as home:
            gpg = gnupg.GPG(gpgbinary=self.gpg_binary, gnupghome=home)
            gpg.encoding = "utf-8"
            imported = gpg.import_keys(self.secret_key, passphrase=self.passphrase or None)
            if not imported.fingerprints:
                raise SigningError("failed to import GPG secret key")
            fingerprint = imported.fingerprints[0]
            logger.debug("Signing commit with key %s", fingerprint)
            signed = gpg.sign(
                payload,
                keyid=fingerprint,
                passphrase=self.passphrase or None,
                detach=True,
            )
            if not signed.data:
                raise SigningError(f"failed to sign commit: {signed.status}")
            return str(signed)
