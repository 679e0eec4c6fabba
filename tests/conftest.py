"""Pytest configuration and shared fixtures."""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from seeds.config import default_config, save_config
from seeds.constants import ISSUES_FILE, TEMPLATES_FILE
from seeds.storage import SeedsStorage

# Environment variables that skip system/global git config lookups and make
# commits work without any per-repo user configuration.
_GIT_TEST_ENV = {
    **os.environ,
    "GIT_CONFIG_NOSYSTEM": "1",
    "HOME": "/dev/null",
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@test.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@test.com",
    "GIT_TERMINAL_PROMPT": "0",
}


def init_seeds_dir(seeds_dir: Path, project: str = "test") -> Path:
    """Lay out an initialized .seeds directory without going through the CLI."""
    seeds_dir.mkdir(parents=True, exist_ok=True)
    save_config(seeds_dir, default_config(project))
    (seeds_dir / ISSUES_FILE).touch()
    (seeds_dir / TEMPLATES_FILE).touch()
    return seeds_dir


@pytest.fixture
def seeds_dir(tmp_path: Path) -> Path:
    """Create an initialized .seeds directory with project prefix ``test``."""
    return init_seeds_dir(tmp_path / ".seeds")


@pytest.fixture
def storage(seeds_dir: Path) -> SeedsStorage:
    """Storage over the temporary .seeds directory."""
    return SeedsStorage(seeds_dir)


@dataclass
class GitRepo:
    """A temporary git repository with seeds initialized."""

    path: Path
    seeds_dir: Path

    def git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a git command in this repo."""
        return subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            text=True,
            check=check,
            env=_GIT_TEST_ENV,
        )

    def commit_all(self, message: str) -> None:
        """Stage all changes and commit."""
        self.git("add", "-A")
        self.git("commit", "-m", message)

    def log_subjects(self) -> list[str]:
        """Return commit subjects, newest first."""
        return self.git("log", "--format=%s").stdout.splitlines()


@pytest.fixture(scope="session")
def _git_template_dir(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Empty template dir to skip copying sample hooks during git init."""
    return str(tmp_path_factory.mktemp("git-tpl"))


@pytest.fixture
def git_repo(
    tmp_path: Path,
    _git_template_dir: str,
    monkeypatch: pytest.MonkeyPatch,
) -> GitRepo:
    """Create a temporary git repository with seeds initialized and committed."""
    for key in (
        "GIT_CONFIG_NOSYSTEM",
        "HOME",
        "GIT_AUTHOR_NAME",
        "GIT_AUTHOR_EMAIL",
        "GIT_COMMITTER_NAME",
        "GIT_COMMITTER_EMAIL",
        "GIT_TERMINAL_PROMPT",
    ):
        # Code under test shells out to git with the inherited environment
        monkeypatch.setenv(key, _GIT_TEST_ENV[key])

    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    seeds_dir = init_seeds_dir(repo_path / ".seeds")

    subprocess.run(
        ["git", "init", "-b", "main", "--template", _git_template_dir, str(repo_path)],
        check=True,
        capture_output=True,
        env=_GIT_TEST_ENV,
    )
    repo = GitRepo(path=repo_path, seeds_dir=seeds_dir)
    repo.commit_all("Initial commit with empty .seeds")
    return repo
