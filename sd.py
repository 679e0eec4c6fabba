#!/usr/bin/env -S uv run --script
#
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "typer",
#   "rich",
#   "orjson",
#   "pyyaml",
# ]
# ///

"""Entry point for the seeds CLI."""

import sys
from pathlib import Path

src_path = Path(__file__).resolve().parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from seeds.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
