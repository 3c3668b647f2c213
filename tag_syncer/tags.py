"""
Tag reconciliation between the source and a target repository.

Stale target tags are pruned first, using the tag list captured before any
new tags are applied; then the release tag and the special tags are moved
to the freshly synced commit.
"""

from dataclasses import dataclass, field

from rich.console import Console

from .git_ops import GitRepository

console = Console()


@dataclass
class TagReconciliation:
    """What happened to the target's tags during a sync."""

    release_tag: str
    stale: set[str] = field(default_factory=set)
    special: set[str] = field(default_factory=set)


def compute_special_tags(source: GitRepository, release_tag: str) -> set[str]:
    """Tags other than release_tag that point at the release commit."""
    commit = source.resolve_commit(release_tag)
    return source.tags_pointing_at(commit) - {release_tag}


def find_stale_tags(target_tags: set[str], source_tags: set[str]) -> set[str]:
    """Tags present on the target but gone from the source."""
    return set(target_tags) - set(source_tags)


def prune_stale_tags(
    target: GitRepository,
    source_tags: set[str],
    remote: str = "origin",
    push: bool = True,
) -> set[str]:
    """
    Delete target tags that no longer exist in the source.

    Tags are removed locally so a later tag push cannot restore them, and
    from the remote when push is set. Remote deletes are best-effort.
    """
    stale = find_stale_tags(target.list_tags(), source_tags)
    for tag in sorted(stale):
        console.print(f"  Deleting tag [cyan]{tag}[/cyan] (not in source)")
        target.delete_tag(tag)
        if push:
            target.delete_remote_tag(tag, remote)
    return stale


def apply_release_tag(target: GitRepository, release_tag: str, message: str) -> None:
    """Create or move the annotated release tag to HEAD."""
    console.print(f"  Applying release tag [cyan]{release_tag}[/cyan]")
    target.create_tag(release_tag, "HEAD", message=message, force=True)


def apply_special_tags(
    target: GitRepository, special_tags: set[str], release_tag: str
) -> None:
    """Move each special tag to the commit the release tag points at."""
    if not special_tags:
        return
    console.print(f"  Applying special tags: {', '.join(sorted(special_tags))}")
    for tag in sorted(special_tags):
        target.create_tag(tag, f"{release_tag}^{{commit}}", force=True)


def reconcile_tags(
    target: GitRepository,
    source_tags: set[str],
    special_tags: set[str],
    release_tag: str,
    message: str,
    remote: str = "origin",
    push: bool = True,
) -> TagReconciliation:
    """Prune stale tags, then apply the release and special tags, in that order."""
    stale = prune_stale_tags(target, source_tags, remote=remote, push=push)
    apply_release_tag(target, release_tag, message)
    apply_special_tags(target, special_tags, release_tag)
    return TagReconciliation(
        release_tag=release_tag,
        stale=stale,
        special=set(special_tags),
    )
