"""Shared infrastructure for seeds CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from typer.core import TyperGroup

from seeds.config import find_seeds_dir
from seeds.constants import PRIORITY_LABELS
from seeds.storage import SeedsStorage

if TYPE_CHECKING:
    import click

SEEDS_DIR_HELP = "Path to .seeds directory (default: search upward from cwd)"


class SortedGroup(TyperGroup):
    """Typer group that lists commands in alphabetical order."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return commands sorted alphabetically."""
        return sorted(super().list_commands(ctx))


def resolve_seeds_dir(seeds_dir: str | None = None) -> Path:
    """Use an explicit ``--seeds-dir`` as given, otherwise search upward."""
    if seeds_dir:
        return Path(seeds_dir)
    return find_seeds_dir()


def get_storage(seeds_dir: str | None = None) -> SeedsStorage:
    """Get a storage instance for the resolved .seeds directory.

    Raises:
        NotInitializedError: If no .seeds directory can be found.
    """
    return SeedsStorage(resolve_seeds_dir(seeds_dir))


def parse_priority_value(value: str | int) -> int:
    """Parse a priority given as 0-4 or P0-P4 (case-insensitive).

    Raises:
        ValueError: If the value is not a priority.
    """
    raw = str(value).strip().lower().removeprefix("p")
    try:
        priority = int(raw)
    except ValueError:
        msg = f"Invalid priority '{value}'. Use 0-4 or P0-P4."
        raise ValueError(msg) from None
    if priority not in PRIORITY_LABELS:
        msg = f"Invalid priority '{value}'. Must be 0-4."
        raise ValueError(msg)
    return priority
