"""Command line interface for ghgraph.

Each command performs one file-level operation against a branch through the
GitHub Git Data API, producing exactly one commit for mutations.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .cli_utils import (
    format_json_error,
    format_json_success,
    handle_api_error,
    mutation_data,
)
from .git_data.models import MutationResult
from .git_data.repository import Repository
from .github import GitHub
from .utils.config_manager import ClientConfig, ConfigManager

console = Console()
err_console = Console(stderr=True)


def _split_repo(repo: str) -> Tuple[str, str]:
    owner, _, name = repo.partition("/")
    if not owner or not name or "/" in name:
        raise click.BadParameter(
            f"expected OWNER/NAME, got '{repo}'", param_hint="REPO"
        )
    return owner, name


def _load_config(ctx: click.Context) -> ClientConfig:
    """Load configuration and set up logging for the invoked command.

    Raises:
        click.ClickException: If the config file or an override is invalid
    """
    try:
        config = ConfigManager(ctx.obj.get("config_dir")).load_or_default()
    except ValueError as e:
        raise click.ClickException(str(e))

    level = "DEBUG" if ctx.obj.get("verbose") else config.log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    return config


def _run(
    ctx: click.Context,
    repo: str,
    action: Callable[[Repository], Awaitable[Any]],
    json_output: bool,
) -> Any:
    """Run ``action`` against a repository handle, exiting 1 on failure."""
    owner, name = _split_repo(repo)
    config = _load_config(ctx)

    async def runner() -> Any:
        async with GitHub(config) as gh:
            return await action(gh.get_repo(owner, name))

    try:
        return asyncio.run(runner())
    except Exception as e:
        if json_output:
            click.echo(
                format_json_error(
                    str(e), type(e).__name__, getattr(e, "status_code", None)
                )
            )
        else:
            err_console.print(f"[red]Error: {escape(handle_api_error(e))}[/red]")
        sys.exit(1)


def _report_mutation(
    result: Optional[MutationResult], json_output: bool, verb: str, path: str
) -> None:
    if json_output:
        click.echo(format_json_success(mutation_data(result)))
    elif result is None:
        console.print(f"[yellow]{escape(path)} not found, no commit created[/yellow]")
    else:
        console.print(f"[green]{verb}:[/green] {escape(path)}")
        console.print(f"  Commit: {result.commit_sha}")
        console.print(f"  Parent: {result.parent_sha}")


@click.group()
@click.version_option(__version__, prog_name="ghgraph")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    help="Configuration directory (default: ~/.ghgraph)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_dir: Optional[str], verbose: bool):
    """Read and commit files on GitHub branches without a local clone."""
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    ctx.obj["verbose"] = verbose


@cli.command("read")
@click.argument("repo")
@click.argument("path")
@click.option("--branch", "-b", help="Branch (default: configured default branch)")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False), help="Write content to file"
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def read_command(
    ctx: click.Context,
    repo: str,
    path: str,
    branch: Optional[str],
    output: Optional[str],
    json_output: bool,
):
    """Print the file at PATH in REPO (OWNER/NAME)."""

    async def action(repository: Repository):
        return await repository.read(branch or repository.config.default_branch, path)

    result = _run(ctx, repo, action, json_output)
    if result is None:
        if json_output:
            click.echo(format_json_error(f"{path} not found", "NotFound"))
        else:
            err_console.print(f"[red]Error: {escape(path)} not found[/red]")
        sys.exit(1)

    if output:
        Path(output).write_bytes(result.data)
        if not json_output:
            console.print(f"[green]Saved:[/green] {output} ({len(result.data)} bytes)")
    if json_output:
        try:
            content: Optional[str] = result.text
        except UnicodeDecodeError:
            content = None
        click.echo(
            format_json_success(
                {"sha": result.sha, "size": len(result.data), "content": content}
            )
        )
    elif not output:
        click.echo(result.data, nl=False)


@cli.command("write")
@click.argument("repo")
@click.argument("path")
@click.option("--content", "-c", help="File content (inline)")
@click.option(
    "--from-file",
    "-f",
    type=click.Path(exists=True, dir_okay=False),
    help="Read content from local file",
)
@click.option("--message", "-m", required=True, help="Commit message")
@click.option("--branch", "-b", help="Branch (default: configured default branch)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def write_command(
    ctx: click.Context,
    repo: str,
    path: str,
    content: Optional[str],
    from_file: Optional[str],
    message: str,
    branch: Optional[str],
    json_output: bool,
):
    """Write PATH in REPO and commit it.

    Examples:

        ghgraph write octocat/hello README.md -c "hello" -m "Update README"

        ghgraph write octocat/hello logo.png -f ./logo.png -m "Add logo"
    """
    if (content is None) == (from_file is None):
        msg = "Provide exactly one of --content or --from-file"
        if json_output:
            click.echo(format_json_error(msg, "ValidationError"))
        else:
            err_console.print(f"[red]Error: {msg}[/red]")
        sys.exit(1)

    payload: Any = Path(from_file).read_bytes() if from_file else content

    async def action(repository: Repository):
        return await repository.write(
            branch or repository.config.default_branch, path, payload, message
        )

    result = _run(ctx, repo, action, json_output)
    _report_mutation(result, json_output, "Wrote", path)


@cli.command("rm")
@click.argument("repo")
@click.argument("path")
@click.option("--message", "-m", help="Commit message (default: 'Deleted PATH')")
@click.option("--branch", "-b", help="Branch (default: configured default branch)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def rm_command(
    ctx: click.Context,
    repo: str,
    path: str,
    message: Optional[str],
    branch: Optional[str],
    json_output: bool,
):
    """Remove PATH (file or directory) from REPO and commit."""

    async def action(repository: Repository):
        return await repository.remove(
            branch or repository.config.default_branch, path, message
        )

    result = _run(ctx, repo, action, json_output)
    _report_mutation(result, json_output, "Removed", path)


@cli.command("mv")
@click.argument("repo")
@click.argument("path")
@click.argument("new_path")
@click.option("--message", "-m", help="Commit message")
@click.option("--branch", "-b", help="Branch (default: configured default branch)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def mv_command(
    ctx: click.Context,
    repo: str,
    path: str,
    new_path: str,
    message: Optional[str],
    branch: Optional[str],
    json_output: bool,
):
    """Move PATH to NEW_PATH in REPO and commit."""

    async def action(repository: Repository):
        return await repository.move(
            branch or repository.config.default_branch, path, new_path, message
        )

    result = _run(ctx, repo, action, json_output)
    _report_mutation(result, json_output, "Moved", f"{path} -> {new_path}")


@cli.command("branch")
@click.argument("repo")
@click.argument("new_branch")
@click.option("--from", "base", help="Base branch (default: configured default branch)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def branch_command(
    ctx: click.Context,
    repo: str,
    new_branch: str,
    base: Optional[str],
    json_output: bool,
):
    """Create NEW_BRANCH in REPO."""

    async def action(repository: Repository):
        if base:
            return await repository.branch(base, new_branch)
        return await repository.branch(new_branch)

    result = _run(ctx, repo, action, json_output)
    if json_output:
        click.echo(format_json_success(result))
    else:
        console.print(f"[green]Created branch:[/green] {new_branch}")


@cli.command("branches")
@click.argument("repo")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def branches_command(ctx: click.Context, repo: str, json_output: bool):
    """List the branches of REPO."""

    async def action(repository: Repository):
        return await repository.list_branches()

    names = _run(ctx, repo, action, json_output)
    if json_output:
        click.echo(format_json_success(names))
    else:
        for name in names:
            console.print(name)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
