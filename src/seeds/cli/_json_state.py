"""Global output state (JSON / quiet) for the seeds CLI."""

from __future__ import annotations

from typing import Any

import orjson
import typer

_global_json: bool = False
_quiet: bool = False


def set_json_flag(value: bool) -> None:
    """Set the global JSON output flag."""
    global _global_json  # noqa: PLW0603
    _global_json = value


def set_quiet_flag(value: bool) -> None:
    """Set the global quiet flag."""
    global _quiet  # noqa: PLW0603
    _quiet = value


def is_json_output(local_flag: bool = False) -> bool:
    """Check if JSON output is enabled (global or local flag).

    Also syncs the local flag to global state so that ``echo_error``
    outputs JSON when the per-command ``--json`` flag is used.
    """
    global _global_json  # noqa: PLW0603
    if local_flag and not _global_json:
        _global_json = True
    return local_flag or _global_json


def echo(message: str = "") -> None:
    """Print human-readable output unless ``--quiet`` is set."""
    if not _quiet:
        typer.echo(message)


def echo_json(command: str, **payload: Any) -> None:
    """Print a success envelope: ``{"success": true, "command": ..., ...}``."""
    data = {"success": True, "command": command, **payload}
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())


def echo_error(message: str, command: str | None = None) -> None:
    """Output an error message, formatted as JSON if in JSON mode.

    In JSON mode, writes ``{"success": false, "command": ..., "error": ...}``
    to stdout so callers can parse a single stream.  In plain mode, writes
    ``Error: ...`` to stderr.
    """
    if _global_json:
        data: dict[str, Any] = {"success": False}
        if command:
            data["command"] = command
        data["error"] = message
        typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())
    else:
        typer.echo(f"Error: {message}", err=True)
