"""
Main syncer logic for propagating a release into target repositories.

For every target repository the syncer clones a fresh copy, generates the
change message, mirrors the sync list, commits, reconciles tags and
force-pushes the branch and tags. Target history is treated as derived
from the source and is overwritten.
"""

import uuid
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .changes import ChangeSummary, summarize_changes
from .config import ConfigurationError, SyncConfig
from .files import copy_ignore_file, mirror_items, read_sync_list, validate_sync_items
from .git_ops import CommandError, GitRepository, clone_fresh
from .tags import TagReconciliation, compute_special_tags, reconcile_tags

console = Console()


@dataclass
class SyncOutputs:
    """Values published for the caller, reflecting the last processed repo."""

    end_tag: str
    start_tag: str = ""
    changes: str = ""
    changes_with_asterisk: str = ""

    def as_dict(self) -> dict[str, str]:
        return {
            "changes": self.changes,
            "changes_with_asterisk": self.changes_with_asterisk,
            "start_tag": self.start_tag,
            "end_tag": self.end_tag,
        }

    def write_github_output(self, path: Path) -> None:
        """Append the outputs to a GitHub Actions output file."""
        with open(path, "a", encoding="utf-8") as f:
            for name, value in self.as_dict().items():
                delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


@dataclass
class RepoSyncResult:
    """Result of syncing a single target repository."""

    url: str
    path: Path
    summary: ChangeSummary | None = None
    committed: bool = False
    commit_hash: str | None = None
    files_copied: int = 0
    files_removed: int = 0
    tags: TagReconciliation | None = None
    pushed: bool = False
    error: str | None = None


@dataclass
class SyncResult:
    """Result of a whole sync run."""

    success: bool
    outputs: SyncOutputs
    repos: list[RepoSyncResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class TagSyncer:
    """Syncs a tagged release of the source repo into the target repos."""

    def __init__(self, config: SyncConfig):
        """Initialize the syncer with configuration."""
        self.config = config
        self.source = GitRepository(config.source_repo_path, timeout=config.command_timeout)
        self.source_tags: set[str] = set()
        self.special_tags: set[str] = set()
        self.sync_items: list[str] = []

    def prepare(self) -> None:
        """Read the sync list and capture the source's tag state."""
        self.sync_items = read_sync_list(self.config.sync_list_path)
        validate_sync_items(self.source.path, self.sync_items)

        try:
            self.source.resolve_commit(self.config.tag)
        except CommandError as e:
            raise ConfigurationError(
                f"Tag {self.config.tag!r} not found in source repo {self.source.path}"
            ) from e

        self.source_tags = self.source.list_tags()
        self.special_tags = compute_special_tags(self.source, self.config.tag)

        console.print(f"[dim]Source repo path: {self.source.path}[/dim]")
        console.print(f"[dim]Syncing tag: {self.config.tag}[/dim]")
        console.print(f"[dim]Files to sync: {', '.join(self.sync_items)}[/dim]")
        if self.special_tags:
            console.print(f"[dim]Special tags: {', '.join(sorted(self.special_tags))}[/dim]")

    def sync(self) -> SyncResult:
        """
        Perform the synchronization for every configured repository.

        Stops at the first failing repository unless continue_on_error is
        set, in which case the remaining repositories are still processed
        and the run is reported as failed at the end.

        Returns:
            SyncResult with the outputs of the last processed repository
        """
        self.prepare()

        result = SyncResult(success=True, outputs=SyncOutputs(end_tag=self.config.tag))

        if self.config.dry_run:
            console.print("[yellow]DRY RUN - Nothing will be pushed[/yellow]")

        for url in self.config.repos:
            repo_result = RepoSyncResult(url=url, path=self.config.target_path_for(url))
            result.repos.append(repo_result)
            try:
                self.sync_repo(repo_result, result.outputs)
            except (CommandError, ConfigurationError, OSError) as e:
                error_msg = f"Error syncing {url}: {e}"
                repo_result.error = str(e)
                result.errors.append(error_msg)
                result.success = False
                console.print(f"[red]{escape(error_msg)}[/red]")
                if not self.config.continue_on_error:
                    break

        self._print_summary(result)
        return result

    def sync_repo(self, repo_result: RepoSyncResult, outputs: SyncOutputs) -> None:
        """Sync a single target repository."""
        config = self.config
        console.print(f"\n[bold]Processing repository: {repo_result.url}[/bold]")

        target = clone_fresh(repo_result.url, repo_result.path, timeout=config.command_timeout)

        summary = summarize_changes(self.source, target, config.tag, config.show_author)
        repo_result.summary = summary
        outputs.changes = summary.message
        outputs.changes_with_asterisk = summary.message_with_asterisk
        outputs.start_tag = summary.start_tag

        console.print("  Syncing files...")
        report = mirror_items(self.source.path, target.path, self.sync_items)
        repo_result.files_copied = len(report.copied)
        repo_result.files_removed = len(report.removed)

        if config.gitignore_file:
            copy_ignore_file(self.source.path, target.path, config.gitignore_file)

        target.stage_all()
        if target.has_staged_changes():
            repo_result.commit_hash = target.commit(summary.message)
            repo_result.committed = True
            console.print(f"  [green]✓[/green] Committed {repo_result.commit_hash[:8]}")
        else:
            console.print("  [dim]No file changes to commit[/dim]")

        console.print("  Synchronizing tags...")
        repo_result.tags = reconcile_tags(
            target,
            source_tags=self.source_tags,
            special_tags=self.special_tags,
            release_tag=config.tag,
            message=summary.message,
            remote=config.remote,
            push=not config.dry_run,
        )

        if config.dry_run:
            console.print("  [yellow]Skipping push (dry run)[/yellow]")
            return

        branch = target.get_current_branch()
        console.print(f"  Pushing branch [cyan]{branch}[/cyan] and all tags...")
        target.push_branch(branch, remote=config.remote, force=True)
        target.push_tags(remote=config.remote, force=True)
        repo_result.pushed = True

    def _print_summary(self, result: SyncResult) -> None:
        """Print sync summary."""
        console.print("\n[bold]Sync Summary:[/bold]")
        prefix = "[DRY RUN] " if self.config.dry_run else ""

        table = Table()
        table.add_column("Repository", style="cyan")
        table.add_column("Start tag", style="green")
        table.add_column("Commit", width=10)
        table.add_column("Stale tags", style="yellow")
        table.add_column("Status")

        for repo in result.repos:
            if repo.error:
                status = "[red]failed[/red]"
            elif repo.pushed:
                status = "[green]pushed[/green]"
            else:
                status = "[dim]not pushed[/dim]"
            table.add_row(
                repo.url,
                repo.summary.start_tag if repo.summary else "",
                repo.commit_hash[:8] if repo.commit_hash else "-",
                ", ".join(sorted(repo.tags.stale)) if repo.tags else "",
                status,
            )

        console.print(table)

        skipped = len(self.config.repos) - len(result.repos)
        if result.success:
            console.print(f"  [green]✓ {prefix}Synced {len(result.repos)} repositories[/green]")
        else:
            console.print(f"  [red]✗ {prefix}Sync failed[/red]")
            if skipped:
                console.print(f"  [yellow]Not attempted: {skipped} repositories[/yellow]")
            for error in result.errors:
                console.print(f"    • {escape(error)}")
