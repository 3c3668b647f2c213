"""
Change message generation.

Builds the changelog-style commit message for a sync: the non-merge commit
subjects between the last tag the target was synced at and the release tag,
deduplicated in order of first appearance.
"""

from dataclasses import dataclass

from rich.console import Console

from .git_ops import GitRepository

console = Console()


@dataclass
class ChangeSummary:
    """Deduplicated change lines and the tag the range starts from."""

    lines: list[str]
    start_tag: str = ""

    @property
    def message(self) -> str:
        return "\n".join(self.lines)

    @property
    def message_with_asterisk(self) -> str:
        return with_asterisk(self.message)


def dedupe_lines(lines: list[str]) -> list[str]:
    """Drop repeated lines, keeping the first occurrence of each."""
    return list(dict.fromkeys(lines))


def with_asterisk(message: str) -> str:
    """Prefix every non-blank line with a markdown bullet."""
    return "\n".join(f"* {line}" for line in message.splitlines() if line.strip())


def find_start_tag(source: GitRepository, target: GitRepository) -> str:
    """
    Find the tag the target was last synced at.

    This is the nearest tag reachable from the target's HEAD, provided a tag
    of the same name exists in the source. Returns "" otherwise.
    """
    candidate = target.describe_latest_tag()
    if not candidate:
        return ""
    if not source.tag_exists(candidate):
        console.print(
            f"[dim]Latest target tag {candidate!r} is not in the source repo[/dim]"
        )
        return ""
    return candidate


def summarize_changes(
    source: GitRepository,
    target: GitRepository,
    release_tag: str,
    show_author: bool = False,
) -> ChangeSummary:
    """
    Generate the change message for syncing release_tag into target.

    Falls back to the release tag's own commit subject when there is no
    common tag or the range holds no commits, so the result is never empty.
    """
    console.print("[dim]Generating changes for commit message...[/dim]")

    start_tag = find_start_tag(source, target)
    lines: list[str] = []

    if start_tag:
        console.print(f"[dim]Creating log from {start_tag} to {release_tag}[/dim]")
        lines = source.log_subjects(f"{start_tag}..{release_tag}", show_author)

    if not lines:
        console.print(
            "[dim]No common tag or no new commits in range, "
            "using the release commit message[/dim]"
        )
        return ChangeSummary(lines=[source.commit_subject(release_tag)])

    return ChangeSummary(lines=dedupe_lines(lines), start_tag=start_tag)
