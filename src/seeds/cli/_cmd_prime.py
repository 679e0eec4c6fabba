"""Agent workflow context command for seeds CLI."""

from __future__ import annotations

import logging

import typer

from seeds.constants import PRIME_FILE
from seeds.errors import NotInitializedError

from ._helpers import SEEDS_DIR_HELP, resolve_seeds_dir
from ._json_state import echo_json, is_json_output

logger = logging.getLogger(__name__)

_COMPACT_PRIME = """\
# Seeds Quick Reference

```
sd ready                              # Unblocked work
sd show <id>                          # Issue details
sd create "..." --type task -p 2      # New issue
sd update <id> --status in_progress   # Claim work
sd close <id> [<id> ...]              # Finish work
sd dep add <issue> <depends-on>       # Record a blocker
sd blocked                            # Issues waiting on others
sd sync                               # Commit .seeds/
```

**Before finishing:** `sd close <ids> && sd sync && git push`
"""

_FULL_PRIME = """\
# Seeds Workflow Context

> Run `sd prime` again after a context reset or at the start of a session.

## Session Close Checklist

Work is not done until it is pushed. Before reporting a task complete:

```
[ ] 1. Close finished issues:      sd close <id1> <id2> ...
[ ] 2. File follow-up work:        sd create "..."
[ ] 3. Run the project's tests and linters
[ ] 4. Commit and push:            sd sync && git push
[ ] 5. Check:                      git status
```

## Rules

- Track every task in seeds (`sd create`, `sd ready`, `sd close`), not in
  scratch markdown files or ad-hoc todo lists.
- Create the issue before writing code and set it to `in_progress` when you
  start.
- Run `sd sync` at the end of a session.

## Commands

### Finding work
- `sd ready` - open issues with no open blockers
- `sd list --status open` - every open issue
- `sd list --status in_progress` - work already claimed
- `sd show <id>` - one issue with its dependencies

### Creating and updating
- `sd create "Title" --type task|bug|feature|epic --priority 2`
  - Priority is 0-4 or P0-P4 (0 = critical, 2 = medium, 4 = backlog)
- `sd update <id> --status in_progress` - claim an issue
- `sd update <id> --assignee <name>` - hand it to someone
- `sd close <id> [<id> ...] --reason "..."` - close one or more issues

### Dependencies
- `sd dep add <issue> <depends-on>` - `<issue>` waits for `<depends-on>`
- `sd dep remove <issue> <depends-on>`
- `sd blocked` - issues waiting on open blockers

### Templates
- `sd tpl pour <template-id> --prefix <name>` - create a chain of issues
- `sd tpl status <template-id>` - progress of a poured chain

### Project health
- `sd sync` - commit .seeds/ changes (`--status` to only look)
- `sd stats` - counts by status, type and priority
- `sd doctor` - check the data files (`--fix` to repair)

## Workflows

Starting work:
```bash
sd ready
sd show <id>
sd update <id> --status in_progress
```

Finishing work:
```bash
sd close <id1> <id2>
sd sync
git push
```

Dependent work:
```bash
sd create "Implement feature X" --type feature
sd create "Write tests for X"
sd dep add <test-id> <feature-id>
```
"""


def prime_content(compact: bool = False) -> str:
    """Return the built-in workflow context."""
    return _COMPACT_PRIME if compact else _FULL_PRIME


def _custom_prime(seeds_dir: str | None) -> str | None:
    """Read ``.seeds/PRIME.md`` if the project has one."""
    try:
        path = resolve_seeds_dir(seeds_dir) / PRIME_FILE
    except NotInitializedError:
        return None
    try:
        content = path.read_text()
    except FileNotFoundError:
        return None
    except OSError:
        logger.debug("Cannot read %s", path, exc_info=True)
        return None
    return content or None


def register(app: typer.Typer) -> None:
    """Register the prime command."""

    @app.command()
    def prime(
        compact: bool = typer.Option(
            False,
            "--compact",
            help="Print the short command reference only",
        ),
        export: bool = typer.Option(
            False,
            "--export",
            help="Print the built-in context, ignoring .seeds/PRIME.md",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Print workflow context for AI agents.

        A project can replace the built-in text by writing .seeds/PRIME.md.
        Works outside a seeds project too, using the built-in text.
        """
        if export:
            content = prime_content()
        else:
            content = _custom_prime(seeds_dir) or prime_content(compact)

        if is_json_output(json_output):
            echo_json("prime", content=content)
        else:
            typer.echo(content, nl=False)
