"""
CLI entry point for tag_syncer.

Provides command-line interface for syncing a tagged release into target repos.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .changes import summarize_changes
from .config import ConfigurationError, SyncConfig, create_default_config, split_repo_urls
from .git_ops import CommandError, GitRepository
from .syncer import TagSyncer

console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    raise SystemExit(1)


@click.group()
@click.version_option(package_name="tag-syncer")
def cli():
    """Tag Syncer - Propagate a tagged release into target repositories."""
    pass


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a YAML sync configuration file",
)
@click.option(
    "--source-repo",
    "-s",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the source repository (defaults to the current directory)",
)
@click.option(
    "--repo",
    "-r",
    "repos",
    multiple=True,
    help="Target repository URL (repeatable; newline-delimited lists accepted)",
)
@click.option(
    "--sync-list",
    "-l",
    type=click.Path(path_type=Path),
    default=None,
    help="File listing the paths to sync, relative to the source repo",
)
@click.option("--tag", "-t", default=None, help="Release tag to sync")
@click.option(
    "--gitignore-file",
    default=None,
    help="File in the source repo to copy to each target's .gitignore",
)
@click.option(
    "--show-author/--no-show-author",
    default=None,
    help="Append author names to change lines",
)
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Directory to clone targets into (defaults to the source repo's parent)",
)
@click.option(
    "--continue-on-error/--stop-on-error",
    default=None,
    help="Keep processing remaining repositories after a failure",
)
@click.option(
    "--dry-run/--no-dry-run",
    default=None,
    help="Do everything locally but skip remote tag deletes and pushes",
)
@click.option(
    "--timeout",
    "command_timeout",
    type=float,
    default=None,
    help="Timeout in seconds for each git command",
)
@click.option(
    "--github-output",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="GITHUB_OUTPUT",
    default=None,
    help="File to append step outputs to (defaults to $GITHUB_OUTPUT)",
)
def sync(
    config_path: Path | None,
    source_repo: Path | None,
    repos: tuple[str, ...],
    sync_list: Path | None,
    tag: str | None,
    gitignore_file: str | None,
    show_author: bool | None,
    work_dir: Path | None,
    continue_on_error: bool | None,
    dry_run: bool | None,
    command_timeout: float | None,
    github_output: Path | None,
):
    """Sync the release tag's files and tags into every target repository."""
    overrides = {
        "source_repo_path": source_repo,
        "repos": split_repo_urls(repos) or None,
        "sync_list": sync_list,
        "tag": tag,
        "gitignore_file": gitignore_file,
        "show_author": show_author,
        "work_dir": work_dir,
        "continue_on_error": continue_on_error,
        "dry_run": dry_run,
        "command_timeout": command_timeout,
    }

    try:
        if config_path:
            config = SyncConfig.from_yaml(config_path, **overrides)
        else:
            config = SyncConfig.build(**{k: v for k, v in overrides.items() if v is not None})
        result = TagSyncer(config).sync()
    except (ConfigurationError, CommandError, ValueError) as e:
        _fail(str(e))

    outputs = result.outputs
    if github_output:
        outputs.write_github_output(github_output)

    console.print("\n[bold]Outputs:[/bold]")
    for name, value in outputs.as_dict().items():
        console.print(f"  {name}: {value!r}")

    if not result.success:
        raise SystemExit(1)

    console.print("\n[green]Operation completed successfully for all repositories.[/green]")


@cli.command()
@click.option(
    "--source-repo",
    "-s",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    help="Path to the source repository",
)
@click.option(
    "--target-repo",
    "-T",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    required=True,
    help="Path to an existing clone of the target repository",
)
@click.option("--tag", "-t", required=True, help="Release tag to summarize up to")
@click.option("--show-author", is_flag=True, help="Append author names to change lines")
@click.option("--asterisk", is_flag=True, help="Prefix each line with '* '")
def changes(
    source_repo: Path,
    target_repo: Path,
    tag: str,
    show_author: bool,
    asterisk: bool,
):
    """Preview the change message for a target repository."""
    try:
        summary = summarize_changes(
            GitRepository(source_repo), GitRepository(target_repo), tag, show_author
        )
    except (CommandError, ValueError) as e:
        _fail(str(e))

    console.print(f"\n[bold]Start tag:[/bold] {summary.start_tag or '(none)'}\n")
    click.echo(summary.message_with_asterisk if asterisk else summary.message)


@cli.command()
@click.option(
    "--source-repo",
    "-s",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    help="Path to the source repository",
)
@click.option(
    "--repo",
    "-r",
    "repos",
    multiple=True,
    required=True,
    help="Target repository URL (can be specified multiple times)",
)
@click.option("--tag", "-t", default="v0.0.0", help="Release tag to sync")
@click.option(
    "--sync-list",
    "-l",
    type=click.Path(path_type=Path),
    default=Path(".sync-list"),
    help="Sync list file, relative to the source repo",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("tag_syncer.yaml"),
    help="Output config file path",
)
def init(
    source_repo: Path,
    repos: tuple[str, ...],
    tag: str,
    sync_list: Path,
    output: Path,
):
    """Initialize a new sync configuration file."""
    try:
        config = create_default_config(
            source_repo_path=source_repo,
            repos=split_repo_urls(repos),
            tag=tag,
            sync_list=sync_list,
        )
    except ConfigurationError as e:
        _fail(str(e))

    config.to_yaml(output)
    console.print(f"[green]Created configuration file: {output}[/green]")
    console.print(f"  Repositories: {len(config.repos)}")
    console.print(f"  Sync list: {config.sync_list}")
    console.print("\nEdit this file to set the release tag and customize settings.")


if __name__ == "__main__":
    cli()
