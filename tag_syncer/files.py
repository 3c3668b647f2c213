"""
Mirroring of the sync list from the source working tree into a target.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from .config import ConfigurationError

console = Console()


@dataclass
class MirrorReport:
    """Paths touched while mirroring."""

    copied: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def read_sync_list(path: Path) -> list[str]:
    """
    Read the list of paths to sync.

    One relative path per line; blank lines and lines starting with '#'
    are skipped.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Sync list file not found at: {path}")
    items = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            items.append(line)
    return items


def _resolve_inside(root: Path, item: str) -> Path:
    resolved = Path(os.path.normpath(root / item))
    if resolved == root or not resolved.is_relative_to(root):
        raise ConfigurationError(f"Sync item escapes the repository: {item!r}")
    return resolved


def validate_sync_items(source_root: Path, items: list[str]) -> None:
    """Reject sync items that point outside the repository."""
    source_root = Path(source_root).resolve()
    for item in items:
        _resolve_inside(source_root, item)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def mirror_items(source_root: Path, target_root: Path, items: list[str]) -> MirrorReport:
    """
    Make each listed path in target match the source.

    Directories are replaced wholesale, files overwritten, and paths that
    no longer exist in the source are removed from the target.
    """
    source_root = Path(source_root).resolve()
    target_root = Path(target_root).resolve()
    report = MirrorReport()

    for item in items:
        src = _resolve_inside(source_root, item)
        dest = _resolve_inside(target_root, item)

        if src.exists():
            if dest.exists() or dest.is_symlink():
                if src.is_dir() or dest.is_dir() or dest.is_symlink():
                    _remove(dest)
            dest.parent.mkdir(parents=True, exist_ok=True)
            if src.is_dir():
                shutil.copytree(src, dest, symlinks=True)
            else:
                shutil.copy2(src, dest)
            report.copied.append(item)
        else:
            console.print(
                f"  [dim]Source item {item!r} not found, removing it from target[/dim]"
            )
            if dest.exists() or dest.is_symlink():
                _remove(dest)
                report.removed.append(item)

    return report


def copy_ignore_file(source_root: Path, target_root: Path, ignore_file: str) -> bool:
    """Copy ignore_file from the source to the target's .gitignore."""
    src = Path(source_root) / ignore_file
    if not src.is_file():
        console.print(
            f"[yellow]Optional gitignore file {ignore_file!r} not found, skipping[/yellow]"
        )
        return False
    dest = Path(target_root) / ".gitignore"
    console.print(f"  Copying {ignore_file} to {dest}")
    shutil.copy2(src, dest)
    return True
