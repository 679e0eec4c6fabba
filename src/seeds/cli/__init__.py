"""Seeds CLI commands for issue tracking."""

from __future__ import annotations

import logging

import typer

from ._helpers import SortedGroup

app = typer.Typer(
    help="seeds - git-native issue tracking in plain JSONL files",
    no_args_is_help=True,
    cls=SortedGroup,
)


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON for all commands",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
) -> None:
    from ._json_state import set_json_flag, set_quiet_flag

    set_json_flag(json_output)
    set_quiet_flag(quiet)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


from . import (  # noqa: E402
    _cmd_close,
    _cmd_create,
    _cmd_dep,
    _cmd_doctor,
    _cmd_init,
    _cmd_migrate,
    _cmd_onboard,
    _cmd_prime,
    _cmd_read,
    _cmd_sync,
    _cmd_tpl,
    _cmd_update,
    _cmd_workflow,
)

for _mod in (
    _cmd_close,
    _cmd_create,
    _cmd_dep,
    _cmd_doctor,
    _cmd_init,
    _cmd_migrate,
    _cmd_onboard,
    _cmd_prime,
    _cmd_read,
    _cmd_sync,
    _cmd_tpl,
    _cmd_update,
    _cmd_workflow,
):
    _mod.register(app)


def main() -> None:
    """Run the seeds CLI application."""
    app()
