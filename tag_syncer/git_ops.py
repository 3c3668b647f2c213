"""
Git operations for the syncer.

Provides a thin command runner on top of GitPython and a wrapper around a
working copy exposing the tag, log, commit and push operations the syncer
needs. Every command runs in an explicit working directory; the process
working directory is never changed.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path

from git import Git, Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError
from rich.console import Console
from rich.markup import escape

console = Console()


class CommandError(RuntimeError):
    """A git command exited non-zero where success was required."""

    def __init__(self, command: list[str], exit_code: int | None, stderr: str):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f'Command "{" ".join(command)}" failed with exit code {exit_code}:\n{stderr}'
        )


@dataclass
class CommandOutput:
    """Trimmed output of a finished command."""

    stdout: str
    stderr: str

    def lines(self) -> list[str]:
        """Non-empty stdout lines."""
        return [line for line in self.stdout.splitlines() if line.strip()]


def run_git(
    cwd: Path,
    *args: str,
    ignore_return_code: bool = False,
    timeout: float | None = None,
) -> CommandOutput:
    """
    Run ``git <args>`` in ``cwd`` and capture its output.

    Args:
        cwd: Working directory for the command
        *args: Arguments passed to git, verbatim (no shell)
        ignore_return_code: Return the output even if git exits non-zero
        timeout: Kill the command after this many seconds

    Returns:
        CommandOutput with stdout and stderr stripped of surrounding whitespace

    Raises:
        CommandError: If git exits non-zero and ignore_return_code is False
    """
    command = ["git", *args]
    status, stdout, stderr = Git(str(cwd)).execute(
        command,
        with_extended_output=True,
        with_exceptions=False,
        kill_after_timeout=timeout,
    )
    if status != 0 and not ignore_return_code:
        raise CommandError(command, status, stderr.strip())
    return CommandOutput(stdout=stdout.strip(), stderr=stderr.strip())


def clone_fresh(url: str, path: Path, timeout: float | None = None) -> "GitRepository":
    """
    Clone a repository into path, discarding whatever was there before.

    Args:
        url: Git remote URL (e.g., git@github.com:org/repo.git)
        path: Local path to clone into
        timeout: Timeout in seconds for the clone command

    Returns:
        GitRepository wrapper for the cloned repo
    """
    path = Path(path).resolve()

    if path.exists():
        shutil.rmtree(path)

    path.parent.mkdir(parents=True, exist_ok=True)
    run_git(path.parent, "clone", url, str(path), timeout=timeout)
    return GitRepository(path, timeout=timeout)


class GitRepository:
    """Wrapper around a git working copy for sync operations."""

    def __init__(self, path: Path, timeout: float | None = None):
        """Initialize repository wrapper."""
        self.path = Path(path).resolve()
        self.timeout = timeout
        try:
            self.repo = Repo(self.path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise ValueError(f"Not a valid git repository: {self.path}") from e

    def run(self, *args: str, ignore_return_code: bool = False) -> CommandOutput:
        """Run a git command inside this repository."""
        return run_git(
            self.path,
            *args,
            ignore_return_code=ignore_return_code,
            timeout=self.timeout,
        )

    # Tags

    def list_tags(self) -> set[str]:
        """Get the names of all local tags."""
        return set(self.run("tag").lines())

    def tag_exists(self, tag: str) -> bool:
        """Check whether a tag with exactly this name exists."""
        return self.run("tag", "--list", tag).stdout == tag

    def describe_latest_tag(self) -> str | None:
        """
        Get the nearest tag reachable from HEAD.

        Returns None when the repository has no tags (or no commits) yet.
        """
        result = self.run("describe", "--tags", "--abbrev=0", ignore_return_code=True)
        return result.stdout or None

    def resolve_commit(self, ref: str) -> str:
        """Get the commit hash a ref (tag, branch, hash) points at."""
        return self.run("rev-parse", f"{ref}^{{commit}}").stdout

    def tags_pointing_at(self, commit: str) -> set[str]:
        """Get the names of all tags pointing at a commit."""
        return set(self.run("tag", "--points-at", commit).lines())

    def create_tag(
        self,
        tag: str,
        ref: str = "HEAD",
        message: str | None = None,
        force: bool = False,
    ) -> None:
        """Create a tag at ref, annotated when a message is given."""
        args = ["tag"]
        if message is not None:
            args.extend(["-a", "-m", message])
        if force:
            args.append("-f")
        args.extend([tag, ref])
        self.run(*args)

    def delete_tag(self, tag: str) -> None:
        """Delete a local tag."""
        self.run("tag", "-d", tag)

    def delete_remote_tag(self, tag: str, remote: str = "origin") -> CommandOutput | None:
        """
        Delete a tag from the remote.

        Returns the command output on success, None if the delete failed
        (e.g. the tag was already absent remotely).
        """
        try:
            return self.run("push", remote, "--delete", tag)
        except CommandError as e:
            console.print(f"[yellow]Could not delete remote tag {tag}: {escape(e.stderr)}[/yellow]")
            return None

    # History

    def log_subjects(
        self,
        revision_range: str,
        show_author: bool = False,
    ) -> list[str]:
        """
        Get commit subject lines in a range, oldest first, merges excluded.

        Returns an empty list if the range cannot be resolved.
        """
        pretty = "--pretty=format:%s (%an)" if show_author else "--pretty=format:%s"
        result = self.run(
            "log",
            "--no-merges",
            "--reverse",
            pretty,
            revision_range,
            ignore_return_code=True,
        )
        return result.stdout.splitlines() if result.stdout else []

    def commit_subject(self, ref: str) -> str:
        """Get the subject line of the commit a ref points at."""
        return self.run("log", "-1", "--pretty=%s", ref).stdout

    # Working tree

    def stage_all(self) -> None:
        """Stage every change in the working tree, deletions included."""
        self.run("add", "-A")

    def has_staged_changes(self) -> bool:
        """Check whether the index differs from HEAD."""
        return bool(self.run("diff", "--cached", "--name-only").stdout)

    def commit(self, message: str) -> str:
        """Create a commit with the staged changes and return its hash."""
        self.run("commit", "-m", message)
        return self.get_current_commit()

    def get_current_commit(self) -> str:
        """Get the current HEAD commit hash."""
        return self.repo.head.commit.hexsha

    def get_current_branch(self) -> str:
        """Get the current branch name."""
        return self.run("symbolic-ref", "--short", "HEAD").stdout

    # Remote

    def push_branch(
        self, branch: str | None = None, remote: str = "origin", force: bool = True
    ) -> None:
        """Push a branch (the current one by default) to the remote."""
        target_branch = branch or self.get_current_branch()
        args = ["push", remote, target_branch]
        if force:
            args.append("--force")
        self.run(*args)

    def push_tags(self, remote: str = "origin", force: bool = True) -> None:
        """Push all local tags to the remote."""
        args = ["push", remote, "--tags"]
        if force:
            args.append("--force")
        self.run(*args)
