"""Random hex ID generation for issues and templates."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from seeds.constants import ID_HEX_LENGTH, ID_HEX_LENGTH_FALLBACK, ID_MAX_ATTEMPTS

if TYPE_CHECKING:
    from collections.abc import Collection


def _make_id(prefix: str, hex_length: int) -> str:
    """Build ``{prefix}-{hex}`` with ``hex_length`` random hex digits."""
    return f"{prefix}-{secrets.token_hex((hex_length + 1) // 2)[:hex_length]}"


def generate_id(prefix: str, existing_ids: Collection[str]) -> str:
    """Generate an ID that is not in ``existing_ids``.

    Tries short 4-digit IDs first; after ``ID_MAX_ATTEMPTS`` collisions the
    ID space is assumed to be crowded and 8-digit IDs are used instead.

    Args:
        prefix: Project prefix (e.g., "seeds") or "tpl" for templates
        existing_ids: IDs already in use

    Returns:
        A new unique ID
    """
    taken = existing_ids if isinstance(existing_ids, (set, frozenset)) else set(existing_ids)

    for _ in range(ID_MAX_ATTEMPTS):
        candidate = _make_id(prefix, ID_HEX_LENGTH)
        if candidate not in taken:
            return candidate

    candidate = _make_id(prefix, ID_HEX_LENGTH_FALLBACK)
    while candidate in taken:
        candidate = _make_id(prefix, ID_HEX_LENGTH_FALLBACK)
    return candidate
