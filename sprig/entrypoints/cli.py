"""Sprig CLI entrypoint.

Command-line interface for inspecting and comparing git repositories.
"""

from __future__ import annotations

import functools
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from sprig.core.errors import SprigCliError
from sprig.core.progress import spinner
from sprig.domain.exceptions import NotFoundError, SprigError
from sprig.version import __version__

if TYPE_CHECKING:
    from sprig.adapters.factory import ServiceFactory
    from sprig.domain.config import SprigConfig
    from sprig.domain.entities import Commit, FileDiff
    from sprig.ports.config import ConfigProvider

repo_argument = click.argument(
    "repo", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
json_option = click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
offset_option = click.option(
    "--offset", type=click.IntRange(min=0), default=0, show_default=True, help="Entries to skip."
)
limit_option = click.option(
    "--limit", "-n", type=click.IntRange(min=0), default=None, help="Maximum entries to show."
)
other_repo_option = click.option(
    "--target-repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository holding the target ref (a fork of REPO).",
)


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Domain errors become SprigCliError with their hint; invalid arguments
    detected by the services (ValueError) become SprigCliError as well.
    Anything else is reported as unexpected, with a traceback in verbose mode.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (SprigCliError, click.exceptions.Exit):
                raise
            except NotFoundError as e:
                raise SprigCliError(
                    e.message,
                    hint=e.hint or "Check the ref names with 'sprig branches' or 'sprig tags'",
                ) from e
            except SprigError as e:
                raise SprigCliError(e.message, hint=e.hint) from e
            except ValueError as e:
                raise SprigCliError(str(e)) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise SprigCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _load_config(config_path: Path | None) -> SprigConfig:
    """Load the effective configuration (defaults, global file, explicit file)."""
    from sprig.adapters.config import TomlConfigProvider

    provider: ConfigProvider = TomlConfigProvider()
    return provider.load(config_path)


def _services(ctx: click.Context) -> ServiceFactory:
    """Get the service factory for this invocation, creating it on first use."""
    from sprig.adapters.factory import ServiceFactory

    if "factory" not in ctx.obj:
        ctx.obj["factory"] = ServiceFactory(_load_config(ctx.obj.get("config_path")))
    return ctx.obj["factory"]


def _to_data(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_to_data(item) for item in value]
    return value


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(_to_data(value), indent=2, default=str))


def _format_commit(commit: Commit) -> str:
    return f"{commit.short_hash} {commit.subject} ({commit.committer_name})"


def _echo_file_diff(file_diff: FileDiff) -> None:
    status = ""
    if file_diff.is_new_file:
        status = " (new file)"
    elif file_diff.is_deleted:
        status = " (deleted)"
    click.secho(f"diff {file_diff.path}{status}", bold=True)
    if file_diff.is_binary:
        click.echo("Binary file differs")
        return
    for block in file_diff.blocks:
        click.secho(block.hunk_header, fg="cyan")
        for line in block.body.split("\n"):
            if line.startswith("+"):
                click.secho(line, fg="green")
            elif line.startswith("-"):
                click.secho(line, fg="red")
            else:
                click.echo(line)


@click.group()
@click.version_option(version=__version__, prog_name="sprig")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (logs every git invocation).",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file layered over the global config.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config_path: Path | None) -> None:
    """Sprig - git history, diffs and merges across repositories."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
@repo_argument
@json_option
@click.pass_context
@handle_cli_errors("branches")
def branches(ctx: click.Context, repo: Path, as_json: bool) -> None:
    """List branches of REPO with their head commits."""
    result = _services(ctx).history.list_branches(repo)
    if as_json:
        _echo_json(result)
        return
    for branch in result:
        marker = "*" if branch.is_current else " "
        click.echo(f"{marker} {branch.name:<30} {_format_commit(branch.head_commit)}")


@cli.command()
@repo_argument
@json_option
@click.pass_context
@handle_cli_errors("tags")
def tags(ctx: click.Context, repo: Path, as_json: bool) -> None:
    """List tags of REPO with the commits they point at."""
    result = _services(ctx).history.list_tags(repo)
    if as_json:
        _echo_json(result)
        return
    for tag in result:
        click.echo(f"{tag.name:<30} {_format_commit(tag.tagged_commit)}")


@cli.command()
@repo_argument
@click.argument("ref", default="HEAD")
@click.option("--base", default=None, help="Only show commits not reachable from BASE.")
@click.option("--path", "file_path", default=None, help="Only show commits touching this path.")
@other_repo_option
@offset_option
@limit_option
@json_option
@click.pass_context
@handle_cli_errors("log")
def log(
    ctx: click.Context,
    repo: Path,
    ref: str,
    base: str | None,
    file_path: str | None,
    target_repo: Path | None,
    offset: int,
    limit: int | None,
    as_json: bool,
) -> None:
    """List commits reachable from REF, newest first.

    With --target-repo, REF names a branch of that repository and --base a
    branch of REPO; the commits on the fork that REPO lacks are listed.
    """
    history = _services(ctx).history
    if target_repo is not None:
        if base is None:
            raise SprigCliError("--target-repo requires --base", hint="Pass the base branch of REPO")
        with spinner("Comparing repositories...", ctx.obj["quiet"]):
            commits = history.list_commits_between_forks(repo, base, target_repo, ref, offset, limit)
    elif file_path is not None and base is not None:
        commits = history.list_file_commits_between(repo, file_path, base, ref, offset, limit)
    elif file_path is not None:
        commits = history.list_file_commits(repo, file_path, ref, offset, limit)
    elif base is not None:
        commits = history.list_commits_between(repo, base, ref, offset, limit)
    else:
        commits = history.list_commits(repo, ref, offset, limit)

    if as_json:
        _echo_json(commits)
        return
    for commit in commits:
        click.echo(_format_commit(commit))


@cli.command()
@repo_argument
@click.argument("ref", default="HEAD")
@click.option("--path", "file_path", default=None, help="Show the last commit touching this path.")
@json_option
@click.pass_context
@handle_cli_errors("show")
def show(ctx: click.Context, repo: Path, ref: str, file_path: str | None, as_json: bool) -> None:
    """Show one commit and the files it changed."""
    services = _services(ctx)
    if file_path is not None:
        commit = services.history.get_file_last_commit(repo, ref, file_path)
    else:
        commit = services.history.get_commit(repo, ref)
    changed = services.diff.changed_files_for_commit(repo, commit.hash)

    if as_json:
        _echo_json({"commit": asdict(commit), "changed_files": changed})
        return
    click.secho(f"commit {commit.hash}", fg="yellow")
    click.echo(f"Committer: {commit.committer_name} <{commit.committer_email}>")
    click.echo(f"Time:      {commit.commit_time_ms}")
    click.echo("")
    click.echo(f"    {commit.subject}")
    if commit.body:
        click.echo("")
        for line in commit.body.split("\n"):
            click.echo(f"    {line}")
    click.echo("")
    for path in changed:
        click.echo(path)


@cli.command()
@repo_argument
@click.argument("ref", default="HEAD")
@click.option("--base", default=None, help="Only count commits not reachable from BASE.")
@other_repo_option
@click.pass_context
@handle_cli_errors("count")
def count(
    ctx: click.Context,
    repo: Path,
    ref: str,
    base: str | None,
    target_repo: Path | None,
) -> None:
    """Count commits reachable from REF."""
    history = _services(ctx).history
    if target_repo is not None:
        if base is None:
            raise SprigCliError("--target-repo requires --base", hint="Pass the base branch of REPO")
        with spinner("Comparing repositories...", ctx.obj["quiet"]):
            total = history.count_commits_between_forks(repo, base, target_repo, ref)
    elif base is not None:
        total = history.count_commits_between(repo, base, ref)
    else:
        total = history.count_commits(repo, ref)
    click.echo(total)


@cli.command()
@repo_argument
@click.argument("base")
@click.argument("target")
@other_repo_option
@offset_option
@limit_option
@json_option
@click.pass_context
@handle_cli_errors("changed")
def changed(
    ctx: click.Context,
    repo: Path,
    base: str,
    target: str,
    target_repo: Path | None,
    offset: int,
    limit: int | None,
    as_json: bool,
) -> None:
    """List files changed on TARGET since it diverged from BASE."""
    diff = _services(ctx).diff
    if target_repo is not None:
        with spinner("Comparing repositories...", ctx.obj["quiet"]):
            paths = diff.changed_files_between_forks(repo, base, target_repo, target, offset, limit)
    else:
        paths = diff.changed_files(repo, base, target, offset, limit)
    if as_json:
        _echo_json(paths)
        return
    for path in paths:
        click.echo(path)


@cli.command()
@repo_argument
@click.argument("base")
@click.argument("target")
@click.option("--path", "file_path", default=None, help="Only diff this path.")
@other_repo_option
@json_option
@click.pass_context
@handle_cli_errors("diff")
def diff(
    ctx: click.Context,
    repo: Path,
    base: str,
    target: str,
    file_path: str | None,
    target_repo: Path | None,
    as_json: bool,
) -> None:
    """Show the changes on TARGET since it diverged from BASE."""
    engine = _services(ctx).diff
    if target_repo is not None:
        with spinner("Comparing repositories...", ctx.obj["quiet"]):
            if file_path is not None:
                file_diffs = [
                    engine.file_diff_between_forks(repo, base, target_repo, target, file_path)
                ]
            else:
                file_diffs = engine.file_diffs_between_forks(repo, base, target_repo, target)
    elif file_path is not None:
        file_diffs = [engine.file_diff(repo, file_path, base, target)]
    else:
        file_diffs = engine.file_diffs(repo, base, target)

    if as_json:
        _echo_json(file_diffs)
        return
    for file_diff in file_diffs:
        _echo_file_diff(file_diff)


@cli.command()
@repo_argument
@click.argument("ref1")
@click.argument("ref2")
@click.pass_context
@handle_cli_errors("ancestor")
def ancestor(ctx: click.Context, repo: Path, ref1: str, ref2: str) -> None:
    """Print the common ancestor of REF1 and REF2 (the empty tree if none)."""
    click.echo(_services(ctx).diff.common_ancestor(repo, ref1, ref2))


_merge_arguments = [
    click.argument("source_repo", type=click.Path(exists=True, file_okay=False, path_type=Path)),
    click.argument("source_branch"),
    click.argument("target_repo", type=click.Path(exists=True, file_okay=False, path_type=Path)),
    click.argument("target_branch"),
]


def merge_arguments(func):
    """Attach the SOURCE_REPO SOURCE_BRANCH TARGET_REPO TARGET_BRANCH arguments."""
    for argument in reversed(_merge_arguments):
        func = argument(func)
    return func


@cli.command()
@merge_arguments
@click.pass_context
@handle_cli_errors("mergeable")
def mergeable(
    ctx: click.Context,
    source_repo: Path,
    source_branch: str,
    target_repo: Path,
    target_branch: str,
) -> None:
    """Check whether SOURCE_BRANCH merges cleanly into TARGET_BRANCH.

    Exits with status 1 when the merge would conflict.
    """
    with spinner("Trying merge...", ctx.obj["quiet"]):
        result = _services(ctx).merge.is_mergeable(
            source_repo, source_branch, target_repo, target_branch
        )
    if result:
        click.echo("mergeable")
    else:
        click.echo("not mergeable")
        ctx.exit(1)


@cli.command()
@merge_arguments
@json_option
@click.pass_context
@handle_cli_errors("conflicts")
def conflicts(
    ctx: click.Context,
    source_repo: Path,
    source_branch: str,
    target_repo: Path,
    target_branch: str,
    as_json: bool,
) -> None:
    """List the files that conflict when merging SOURCE_BRANCH into TARGET_BRANCH."""
    with spinner("Trying merge...", ctx.obj["quiet"]):
        result = _services(ctx).merge.list_conflicts(
            source_repo, source_branch, target_repo, target_branch
        )
    if as_json:
        _echo_json(result)
        return
    if not result and not ctx.obj["quiet"]:
        click.echo("No conflicts", err=True)
    for conflict in result:
        suffix = " (binary)" if conflict.is_binary else ""
        click.echo(f"{conflict.path}{suffix}")


@cli.command(name="config-init")
@click.argument("path", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
@handle_cli_errors("config-init")
def config_init(ctx: click.Context, path: Path | None, force: bool) -> None:
    """Write a commented default config file.

    Writes to PATH, or to the global config location when PATH is omitted.
    """
    from sprig.shared.config_io import create_default_config_file, get_global_config_path

    target = path or get_global_config_path()
    if target.exists() and not force:
        raise SprigCliError(
            f"Config file already exists: {target}",
            hint="Use --force to overwrite it",
        )
    create_default_config_file(target)
    if not ctx.obj["quiet"]:
        click.echo(f"Created config at {target}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
