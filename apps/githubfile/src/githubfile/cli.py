"""CLI for managing a file in a GitHub repository."""

import logging
from typing import IO

import click
from dotenv import load_dotenv

from .config import load_config
from .errors import GitHubFileError
from .models import FileKey, ManagedFile, ObservedFile
from .reconciler import FileReconciler

logger = logging.getLogger(__name__)


def setup_logging(verbose: int) -> None:
    """Setup logging."""
    level = logging.DEBUG if verbose >= 2 else logging.INFO if verbose == 1 else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def get_reconciler(ctx: click.Context) -> FileReconciler:
    """Build the reconciler on first use, so that --help needs no credentials."""
    if "reconciler" not in ctx.obj:
        options = dict(ctx.obj["options"])
        use_gh_cli = options.pop("use_gh_cli")
        retries = options.pop("retries")
        config = load_config(use_gh_cli=use_gh_cli, **options)
        ctx.obj["reconciler"] = FileReconciler.from_config(config, max_retries=retries)
    return ctx.obj["reconciler"]


def read_contents(contents: str | None, contents_file: IO[str] | None) -> str:
    """Pick the desired contents from exactly one of the two options."""
    if (contents is None) == (contents_file is None):
        raise click.UsageError("Pass exactly one of --contents or --contents-file")
    return contents if contents is not None else contents_file.read()


def echo_file(observed: ObservedFile | None) -> None:
    """Print observed state as JSON (``null`` when absent)."""
    click.echo(observed.model_dump_json(indent=2) if observed is not None else "null")


def run(fn, *args):
    """Run a reconciler call, reporting failures the way the CLI does."""
    try:
        return fn(*args)
    except GitHubFileError as e:
        logger.debug("Operation failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


# ============ CLI Group ============

@click.group()
@click.option("--token", "github_token", envvar="GITHUB_TOKEN", help="GitHub token")
@click.option("--email", "github_email", envvar="GITHUB_EMAIL", help="Commit author email")
@click.option("--username", "github_username", envvar="GITHUB_USERNAME", help="Commit author name")
@click.option("--commit-message-prefix", envvar="COMMIT_MESSAGE_PREFIX", help="Prefix for commit messages")
@click.option("--gpg-secret-key", envvar="GPG_SECRET_KEY", help="GPG secret key, armored or base64")
@click.option("--gpg-passphrase", envvar="GPG_PASSPHRASE", help="Passphrase of the GPG secret key")
@click.option("--base-url", envvar="GITHUB_BASE_URL", help="GitHub API URL (GitHub Enterprise)")
@click.option("--use-gh-cli", is_flag=True, help="Use gh cli credentials")
@click.option("--retries", "-r", type=int, default=3, help="Retry attempts for API requests")
@click.option("-v", "--verbose", count=True, help="Verbosity (-v, -vv)")
@click.pass_context
def cli(ctx: click.Context, verbose: int, **options) -> None:
    """Manage a single file in a GitHub repository.

    Files are addressed by id: OWNER/REPO:BRANCH:PATH.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["options"] = options


def parse_key(file_id: str) -> FileKey:
    return run(FileKey.from_id, file_id)


# ============ Commands ============

@cli.command()
@click.argument("file_id")
@click.option("--contents", help="Desired file contents")
@click.option(
    "--contents-file",
    type=click.File("r", encoding="utf-8"),
    help="Read desired contents from a file ('-' for stdin)",
)
@click.pass_context
def create(ctx, file_id, contents, contents_file):
    """Commit a new file."""
    key = parse_key(file_id)
    desired = ManagedFile(**key.model_dump(), contents=read_contents(contents, contents_file))
    reconciler = run(get_reconciler, ctx)
    echo_file(run(reconciler.create, desired))


@cli.command()
@click.argument("file_id")
@click.pass_context
def read(ctx, file_id):
    """Print the file's current state (null when absent)."""
    key = parse_key(file_id)
    reconciler = run(get_reconciler, ctx)
    echo_file(run(reconciler.read, key))


@cli.command()
@click.argument("file_id")
@click.option("--contents", help="Desired file contents")
@click.option(
    "--contents-file",
    type=click.File("r", encoding="utf-8"),
    help="Read desired contents from a file ('-' for stdin)",
)
@click.pass_context
def update(ctx, file_id, contents, contents_file):
    """Commit new contents for an existing file."""
    key = parse_key(file_id)
    desired = ManagedFile(**key.model_dump(), contents=read_contents(contents, contents_file))
    reconciler = run(get_reconciler, ctx)
    echo_file(run(reconciler.update, desired, key))


@cli.command()
@click.argument("file_id")
@click.pass_context
def delete(ctx, file_id):
    """Delete the file from its branch."""
    key = parse_key(file_id)
    reconciler = run(get_reconciler, ctx)
    run(reconciler.delete, key)
    click.echo(f"Deleted {key.to_id()}")


@cli.command("import")
@click.argument("file_id")
@click.pass_context
def import_(ctx, file_id):
    """Adopt an existing file and print its state."""
    reconciler = run(get_reconciler, ctx)
    echo_file(run(reconciler.import_file, file_id))


def main() -> None:
    """Console entry point; loads .env before options are resolved."""
    load_dotenv()
    cli()


if __name__ == "__main__":
    main()
