"""Pytest configuration and fixtures for tag_syncer tests."""

import tempfile
from pathlib import Path

import pytest
from git import Repo


@pytest.fixture(autouse=True)
def isolated_git(monkeypatch, tmp_path_factory):
    """Give every git process a fixed identity and no user/system config."""
    global_config = tmp_path_factory.mktemp("gitconfig") / "config"
    global_config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Test User")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "test@example.com")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def init_repo(path: Path, bare: bool = False) -> Repo:
    """Initialize a repository on branch main."""
    return Repo.init(path, bare=bare, initial_branch="main")


def commit_files(repo_path: Path, files: dict[str, str | None], message: str) -> str:
    """Write (or delete, for None) files, commit everything and return the hash."""
    for rel_path, content in files.items():
        full_path = repo_path / rel_path
        if content is None:
            full_path.unlink()
            continue
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)
    repo = Repo(repo_path)
    repo.git.add("-A")
    repo.git.commit("-m", message)
    return repo.head.commit.hexsha


@pytest.fixture
def source_repo(temp_dir: Path):
    """
    Source repo with two releases.

    v1.0.0 -> "Initial", v1.1.0 -> "Fix bug". The sync list names dist/ and
    README.md.
    """
    repo_path = temp_dir / "source"
    repo = init_repo(repo_path)

    commit_files(
        repo_path,
        {
            ".sync-list": "dist\n\nREADME.md\n",
            "README.md": "# Project\n",
            "dist/app.js": "console.log(1);\n",
            "src/main.ts": "export {};\n",
        },
        "Initial",
    )
    repo.create_tag("v1.0.0")

    commit_files(repo_path, {"dist/app.js": "console.log(2);\n"}, "Fix bug")
    repo.create_tag("v1.1.0")

    yield repo_path


@pytest.fixture
def target_remote(temp_dir: Path):
    """
    Bare target repo last synced at v1.0.0.

    It also carries an older tag "old-tag" that the source does not have,
    and a dist/stale.bin file the source never had.
    """
    bare_path = temp_dir / "remotes" / "target.git"
    init_repo(bare_path, bare=True)

    seed_path = temp_dir / "seed"
    seed = init_repo(seed_path)
    commit_files(seed_path, {"README.md": "# Old\n"}, "Old sync")
    seed.create_tag("old-tag")
    commit_files(
        seed_path,
        {"dist/app.js": "console.log(1);\n", "dist/stale.bin": "stale"},
        "Initial",
    )
    seed.create_tag("v1.0.0")

    seed.create_remote("origin", str(bare_path))
    seed.git.push("origin", "main", "--tags")

    yield bare_path


@pytest.fixture
def local_target(temp_dir: Path):
    """Non-bare target working copy tagged v1.0.0 at its only commit."""
    repo_path = temp_dir / "target"
    repo = init_repo(repo_path)
    commit_files(repo_path, {"README.md": "# Target\n"}, "Target initial")
    repo.create_tag("v1.0.0")
    yield repo_path
