"""Tests for ID generation."""

import re
from unittest.mock import patch

from seeds.idgen import generate_id


class TestGenerateId:
    """Test generate_id."""

    def test_format(self) -> None:
        """IDs are prefix, hyphen and four hex digits."""
        assert re.fullmatch(r"seeds-[0-9a-f]{4}", generate_id("seeds", set()))

    def test_avoids_existing(self) -> None:
        """Generated IDs are never in the existing set."""
        existing = {generate_id("p", set()) for _ in range(50)}
        for _ in range(50):
            assert generate_id("p", existing) not in existing

    def test_falls_back_to_eight_digits(self) -> None:
        """When every short ID collides, an 8-digit ID is used."""
        with patch("seeds.idgen.secrets.token_hex", side_effect=["abcd"] * 100 + ["0123456789"]):
            assert generate_id("p", {"p-abcd"}) == "p-01234567"

    def test_accepts_any_collection(self) -> None:
        """Lists of existing IDs work as well as sets."""
        assert generate_id("tpl", ["tpl-0000"]).startswith("tpl-")
