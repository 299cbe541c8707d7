"""Provider configuration."""

import base64
import binascii
import logging
import os

from gh import get_token
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# field -> environment variable
ENV_VARS = {
    "commit_message_prefix": "COMMIT_MESSAGE_PREFIX",
    "github_email": "GITHUB_EMAIL",
    "github_username": "GITHUB_USERNAME",
    "gpg_secret_key": "GPG_SECRET_KEY",
    "gpg_passphrase": "GPG_PASSPHRASE",
    "base_url": "GITHUB_BASE_URL",
}


def decode_secret_key(value: str) -> str:
    """Return the base64-decoded key when ``value`` is valid base64, else ``value``."""
    compact = "".join(value.split())
    if not compact:
        return value
    try:
        return base64.b64decode(compact, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return value


class GitHubFileConfig(BaseModel):
    """Settings shared by every reconciliation."""

    model_config = ConfigDict(frozen=True)

    github_token: str = Field(..., min_length=1, repr=False)
    github_email: str = Field(..., min_length=1, description="Commit author email; must match the GPG key if one is set")
    github_username: str = Field(..., min_length=1, description="Commit author name")
    commit_message_prefix: str = Field(default="", description="Prepended to every commit message")
    gpg_secret_key: str = Field(default="", repr=False)
    gpg_passphrase: str = Field(default="", repr=False)
    base_url: str | None = None

    @field_validator("gpg_secret_key")
    @classmethod
    def _decode_secret_key(cls, value: str) -> str:
        return decode_secret_key(value)


def load_config(use_gh_cli: bool = False, **overrides: str | None) -> GitHubFileConfig:
    """
    Build the configuration from explicit values and the environment.

    Explicit (non-None) overrides win over environment variables. The token
    is resolved like the GitHub client does: ``github_token``, then
    ``GH_TOKEN`` / ``GITHUB_TOKEN``, then the gh cli when allowed.

    Raises:
        ConfigurationError: A required setting is missing or invalid
    """
    values: dict[str, str] = {}
    for name, env_var in ENV_VARS.items():
        value = overrides.get(name)
        if value is None:
            value = os.environ.get(env_var)
        if value is not None:
            values[name] = value

    token = get_token(overrides.get("github_token"), use_gh_cli=use_gh_cli)
    if token:
        values["github_token"] = token

    try:
        config = GitHubFileConfig(**values)
    except ValidationError as e:
        missing = ", ".join(str(error["loc"][0]) for error in e.errors())
        raise ConfigurationError(f"invalid configuration ({missing})", cause=e) from e

    logger.debug(
        "Configuration loaded: user=%s signing=%s prefix=%r",
        config.github_username,
        bool(config.gpg_secret_key),
        config.commit_message_prefix,
    )
    return config
