"""Configuration file handling and data directory resolution for Seeds."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Any

import yaml

from seeds.constants import (
    CONFIG_FILE,
    DEFAULT_PROJECT,
    DEFAULT_SCHEMA_VERSION,
    SEEDS_DIR_NAME,
)
from seeds.errors import NotInitializedError

logger = logging.getLogger(__name__)


def get_config_path(seeds_dir: str | Path) -> Path:
    """Get the path to the config file.

    Args:
        seeds_dir: Path to .seeds directory

    Returns:
        Path to config.yaml
    """
    return Path(seeds_dir) / CONFIG_FILE


def load_config(seeds_dir: str | Path) -> dict[str, Any]:
    """Load configuration from .seeds/config.yaml.

    Args:
        seeds_dir: Path to .seeds directory

    Returns:
        Configuration dictionary, or empty dict if no config exists or it
        cannot be parsed
    """
    config_path = get_config_path(seeds_dir)
    if not config_path.exists():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text())
    except (yaml.YAMLError, OSError, UnicodeDecodeError):
        logger.debug("Unreadable config %s", config_path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        logger.debug("Config %s is not a mapping", config_path)
        return {}
    return data


def save_config(seeds_dir: str | Path, config: dict[str, Any]) -> None:
    """Save configuration to .seeds/config.yaml.

    Args:
        seeds_dir: Path to .seeds directory
        config: Configuration dictionary to save
    """
    config_path = get_config_path(seeds_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_path.write_text(yaml.safe_dump(config, sort_keys=False))


def get_project(seeds_dir: str | Path) -> str:
    """Get the project name used as the issue ID prefix."""
    project = load_config(seeds_dir).get("project")
    if isinstance(project, str) and project:
        return project
    return DEFAULT_PROJECT


def default_config(project: str) -> dict[str, Any]:
    """Build the config written by ``sd init``."""
    return {"project": project, "version": DEFAULT_SCHEMA_VERSION}


def sanitize_project_name(name: str) -> str:
    """Turn a directory name into an ID-safe project prefix.

    Only lowercase alphanumerics and inner hyphens survive, e.g.
    ``"My Project!"`` -> ``"my-project"``.
    """
    cleaned = re.sub(r"[^a-z0-9-]+", "-", name.lower()).strip("-")
    return cleaned or DEFAULT_PROJECT


# -- Root resolution --------------------------------------------------------


def project_root(seeds_dir: str | Path) -> Path:
    """Return the project directory that holds ``seeds_dir``."""
    return Path(seeds_dir).parent


def git_common_dir(cwd: str | Path) -> Path | None:
    """Return the absolute shared git directory for ``cwd``.

    In a linked worktree, ``git rev-parse --git-common-dir`` points back to
    the main checkout's ``.git`` directory.

    Returns:
        The resolved path, or None if not in a git repo or git is missing.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--git-common-dir"],
            capture_output=True,
            text=True,
            check=False,
            cwd=str(cwd),
        )
    except (FileNotFoundError, OSError):
        return None
    raw = result.stdout.strip()
    if result.returncode != 0 or not raw:
        return None
    return (Path(cwd) / raw).resolve()


def _main_checkout_root(common_dir: Path) -> Path:
    """Map a git common dir to the main checkout root.

    ``<main>/.git`` -> ``<main>``; anything else is treated as
    ``<main>/.git/worktrees/<name>`` and mapped two levels up.
    """
    if common_dir.name == ".git":
        return common_dir.parent
    return common_dir.parent.parent


def is_inside_worktree(directory: str | Path | None = None) -> bool:
    """Check whether ``directory`` is a secondary git worktree.

    Returns False outside git and in the main checkout itself.
    """
    cwd = Path.cwd() if directory is None else Path(directory)
    common = git_common_dir(cwd)
    if common is None:
        return False
    return _main_checkout_root(common) != cwd.resolve()


def resolve_worktree_root(candidate: str | Path) -> Path:
    """Collapse a worktree's .seeds directory onto the main checkout's.

    All worktrees of one repository share a single physical log when the
    main checkout is initialized; otherwise the worktree keeps its own copy.

    Args:
        candidate: A .seeds directory found by walking upward

    Returns:
        The .seeds directory commands should use
    """
    candidate = Path(candidate)
    candidate_root = candidate.parent.resolve()
    common = git_common_dir(candidate_root)
    if common is None:
        return candidate

    main_root = _main_checkout_root(common)
    if main_root == candidate_root:
        return candidate

    main_seeds = main_root / SEEDS_DIR_NAME
    if get_config_path(main_seeds).is_file():
        logger.debug("Worktree %s uses main checkout %s", candidate_root, main_seeds)
        return main_seeds

    logger.debug("Main checkout %s is not initialized; using %s", main_root, candidate)
    return candidate


def find_seeds_dir(start_dir: str | Path | None = None) -> Path:
    """Find the .seeds directory by searching upward from ``start_dir``.

    A directory counts only if it contains config.yaml.  The result is then
    passed through ``resolve_worktree_root``.

    Args:
        start_dir: Directory to start searching from (default: current directory)

    Returns:
        Path to the .seeds directory

    Raises:
        NotInitializedError: If the filesystem root is reached without a match
    """
    current = Path.cwd() if start_dir is None else Path(start_dir).resolve()

    while True:
        candidate = current / SEEDS_DIR_NAME
        if get_config_path(candidate).is_file():
            return resolve_worktree_root(candidate)

        parent = current.parent
        if parent == current:
            msg = "Not in a seeds project. Run 'sd init' first."
            raise NotInitializedError(msg)
        current = parent
