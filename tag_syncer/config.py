"""
Configuration handling for tag_syncer.

Defines the configuration schema and provides methods for loading/saving
sync configuration from YAML files.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class ConfigurationError(ValueError):
    """Raised when required inputs are missing or invalid."""


def extract_repo_name(url: str) -> str:
    """Extract repository name from a git URL or local path."""
    # Handle various URL formats:
    # git@github.com:org/repo.git
    # https://github.com/org/repo.git
    # /srv/git/repo.git
    name = url.strip().rstrip("/")
    if name.endswith(".git"):
        name = name[:-4]
    if "/" in name:
        name = name.rsplit("/", 1)[-1]
    elif ":" in name:
        name = name.rsplit(":", 1)[-1]
    if not name:
        raise ConfigurationError(f"Cannot derive a repository name from: {url!r}")
    return name


def split_repo_urls(values: list[str] | tuple[str, ...] | str) -> list[str]:
    """Flatten newline-delimited repository inputs, dropping blank entries."""
    if isinstance(values, str):
        values = [values]
    urls = []
    for value in values:
        for line in value.splitlines():
            line = line.strip()
            if line:
                urls.append(line)
    return urls


class SyncConfig(BaseModel):
    """Main configuration for a tag sync run."""

    # Source repository (the tagged source of truth)
    source_repo_path: Path = Field(
        default_factory=Path.cwd, description="Path to the source repository root"
    )

    # Target repositories
    repos: list[str] = Field(
        ..., description="Git URLs of the target repositories, processed in order"
    )

    # What to sync
    sync_list: Path = Field(
        ...,
        description="File listing the paths to sync, relative to the source repo",
    )
    tag: str = Field(..., description="Release tag in the source repo to sync")
    gitignore_file: str | None = Field(
        default=None,
        description="File in the source repo copied to each target's .gitignore",
    )
    show_author: bool = Field(
        default=False, description="Append the author name to each change line"
    )

    # Where target repos are cloned (defaults to the source repo's parent)
    work_dir: Path | None = Field(
        default=None, description="Directory holding the target clones"
    )
    remote: str = Field(
        default="origin", description="Git remote name used in the target clones"
    )

    # Run behavior settings
    continue_on_error: bool = Field(
        default=False,
        description="Keep processing remaining repos after one fails",
    )
    dry_run: bool = Field(
        default=False, description="If true, skip remote tag deletes and pushes"
    )
    command_timeout: float | None = Field(
        default=None,
        description="Timeout in seconds for each git command (none by default)",
    )

    @field_validator("repos", mode="before")
    @classmethod
    def _split_repos(cls, value):
        if isinstance(value, (str, list, tuple)):
            return split_repo_urls(value)
        return value

    @field_validator("repos")
    @classmethod
    def _require_repos(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one target repository is required")
        for url in value:
            extract_repo_name(url)
        return value

    @field_validator("tag")
    @classmethod
    def _require_tag(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("release tag must not be empty")
        return value

    @property
    def sync_list_path(self) -> Path:
        """Absolute path of the sync list file."""
        if self.sync_list.is_absolute():
            return self.sync_list
        return self.source_repo_path / self.sync_list

    @property
    def clone_root(self) -> Path:
        """Directory that target clones are created in."""
        if self.work_dir:
            return self.work_dir
        return self.source_repo_path.resolve().parent

    def target_path_for(self, url: str) -> Path:
        """Local clone path for a target repository URL."""
        return self.clone_root / f"target_{extract_repo_name(url)}"

    @classmethod
    def build(cls, **data) -> "SyncConfig":
        """Validate raw settings, reporting problems as ConfigurationError."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e

    @classmethod
    def from_yaml(cls, path: Path, **overrides) -> "SyncConfig":
        """Load configuration from a YAML file, applying non-None overrides."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Error loading config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {path}")
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.build(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "config"
        problems.append(f"{location}: {item['msg']}")
    return "Invalid configuration: " + "; ".join(problems)


def create_default_config(
    source_repo_path: Path,
    repos: list[str],
    tag: str = "v0.0.0",
    sync_list: Path = Path(".sync-list"),
    gitignore_file: str | None = None,
) -> SyncConfig:
    """Create a default configuration with sensible defaults."""
    return SyncConfig.build(
        source_repo_path=source_repo_path,
        repos=repos,
        tag=tag,
        sync_list=sync_list,
        gitignore_file=gitignore_file,
    )
