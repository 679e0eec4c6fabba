"""Agent instructions file setup command for seeds CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from seeds.config import project_root
from seeds.constants import (
    ONBOARD_CANDIDATE_FILES,
    ONBOARD_END_MARKER,
    ONBOARD_START_MARKER,
    ONBOARD_VERSION,
)
from seeds.errors import SeedsError

from ._helpers import SEEDS_DIR_HELP, resolve_seeds_dir
from ._json_state import echo, echo_error, echo_json, is_json_output

VERSION_MARKER = f"<!-- seeds-onboard-v:{ONBOARD_VERSION} -->"

_SNIPPET = f"""\
## Issue Tracking (Seeds)
{VERSION_MARKER}

This project tracks work with seeds (`sd`), a git-native issue tracker.

**At the start of every session**, run:
```
sd prime
```

It prints the rules, the command reference and the common workflows.

**Quick reference:**
- `sd ready` - find unblocked work
- `sd create "..." --type task --priority 2` - file an issue
- `sd update <id> --status in_progress` - claim work
- `sd close <id>` - finish work
- `sd dep add <id> <depends-on>` - record a dependency
- `sd sync` - commit .seeds/ (run before pushing)

### Before You Finish
1. Close finished issues: `sd close <id>`
2. File issues for remaining work: `sd create "..."`
3. Commit and push: `sd sync && git push`"""


def wrap_in_markers(section: str) -> str:
    return f"{ONBOARD_START_MARKER}\n{section}\n{ONBOARD_END_MARKER}"


def has_marker_section(content: str) -> bool:
    return ONBOARD_START_MARKER in content and ONBOARD_END_MARKER in content


def replace_marker_section(content: str, section: str) -> str | None:
    """Swap the text between the markers (inclusive) for ``section``.

    Returns None if either marker is missing.
    """
    start = content.find(ONBOARD_START_MARKER)
    end = content.find(ONBOARD_END_MARKER)
    if start == -1 or end == -1:
        return None
    return content[:start] + wrap_in_markers(section) + content[end + len(ONBOARD_END_MARKER) :]


def section_status(content: str) -> str:
    """Classify a file as ``missing``, ``current`` or ``outdated``."""
    if not has_marker_section(content):
        return "missing"
    if VERSION_MARKER in content:
        return "current"
    return "outdated"


def find_target_file(root: Path) -> Path | None:
    """Return the first existing agent instructions file under ``root``."""
    for name in ONBOARD_CANDIDATE_FILES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def register(app: typer.Typer) -> None:
    """Register the onboard command."""

    @app.command()
    def onboard(
        stdout: bool = typer.Option(
            False,
            "--stdout",
            help="Print the section instead of writing it",
        ),
        check: bool = typer.Option(
            False,
            "--check",
            help="Report whether the section is missing, current or outdated",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Add a seeds section to CLAUDE.md or AGENTS.md.

        The first of CLAUDE.md, .claude/CLAUDE.md and AGENTS.md found in the
        project root is updated; CLAUDE.md is created if none exists.  The
        section sits between marker comments, so running this again only
        rewrites it when its version changed.
        """
        is_json_output(json_output)
        if stdout:
            typer.echo(wrap_in_markers(_SNIPPET))
            return

        try:
            root = project_root(resolve_seeds_dir(seeds_dir))
            target = find_target_file(root)

            if check:
                status = "missing" if target is None else section_status(target.read_text())
                if is_json_output(json_output):
                    echo_json(
                        "onboard",
                        status=status,
                        file=str(target) if target else None,
                    )
                elif target is None:
                    echo("Status: missing (no CLAUDE.md found)")
                else:
                    echo(f"Status: {status} ({target})")
                return

            if target is None:
                target = root / "CLAUDE.md"
                target.write_text(f"{wrap_in_markers(_SNIPPET)}\n")
                action, message = "created", f"Created {target} with seeds section"
            else:
                content = target.read_text()
                status = section_status(content)
                if status == "current":
                    action, message = "unchanged", "Seeds section is already up to date"
                elif status == "outdated":
                    updated = replace_marker_section(content, _SNIPPET)
                    if updated is None:
                        msg = f"Cannot locate seeds markers in {target}"
                        raise SeedsError(msg)
                    target.write_text(updated)
                    action, message = "updated", f"Updated seeds section in {target}"
                else:
                    separator = "\n" if content.endswith("\n") else "\n\n"
                    target.write_text(f"{content}{separator}{wrap_in_markers(_SNIPPET)}\n")
                    action, message = "appended", f"Added seeds section to {target}"
        except (SeedsError, OSError) as e:
            echo_error(str(e), "onboard")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("onboard", action=action, file=str(target))
        else:
            echo(f"✓ {message}")
