"""Doctor command for seeds CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from seeds.constants import SEEDS_DIR_NAME
from seeds.doctor import CheckStatus, DoctorCheck, apply_fixes, run_checks
from seeds.errors import NotInitializedError, SeedsError

from ._helpers import SEEDS_DIR_HELP, resolve_seeds_dir
from ._json_state import echo, echo_error, echo_json, is_json_output

_ICONS = {
    CheckStatus.PASS: typer.style("✓", fg="green"),
    CheckStatus.WARN: typer.style("⚠", fg="yellow"),
    CheckStatus.FAIL: typer.style("✗", fg="red"),
}


def _print_check(check: DoctorCheck, verbose: bool) -> None:
    if check.passed and not verbose:
        return
    echo(f"  {_ICONS[check.status]} {check.message}")
    for detail in check.details:
        echo(typer.style(f"      {detail}", dim=True))


def register(app: typer.Typer) -> None:
    """Register the doctor command."""

    @app.command()
    def doctor(
        fix: bool = typer.Option(False, "--fix", help="Repair fixable problems"),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            help="Also show checks that passed",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Check .seeds/ data integrity and configuration.

        Validates JSONL syntax, record schema, duplicate IDs, dependency
        references and cycles, leftover lock files and .gitattributes.
        Cycles are reported but never repaired automatically.
        Exit code 0 = no failures, 1 = at least one check failed.
        """
        is_json_output(json_output)
        try:
            path = resolve_seeds_dir(seeds_dir)
        except NotInitializedError:
            # Let the config check report the missing directory.
            path = Path.cwd() / SEEDS_DIR_NAME
        try:
            checks = run_checks(path)
            fixed: list[str] = []
            if fix and any(not c.passed and c.fixable for c in checks):
                fixed = apply_fixes(path, checks)
                checks = run_checks(path)
        except SeedsError as e:
            echo_error(str(e), "doctor")
            raise typer.Exit(1)

        failed = any(c.status == CheckStatus.FAIL for c in checks)
        warnings = sum(1 for c in checks if c.status == CheckStatus.WARN)

        if is_json_output(json_output):
            echo_json(
                "doctor",
                checks=[c.to_dict() for c in checks],
                summary={
                    "passed": sum(1 for c in checks if c.passed),
                    "warnings": warnings,
                    "failures": sum(1 for c in checks if c.status == CheckStatus.FAIL),
                },
                fixed=fixed,
            )
        else:
            echo("seeds doctor")
            for check in checks:
                _print_check(check, verbose)
            for message in fixed:
                echo(f"  Fixed: {message}")
            if not failed and not warnings:
                echo("✓ All checks passed")
            elif not fix and any(not c.passed and c.fixable for c in checks):
                echo("Run 'sd doctor --fix' to repair fixable problems.")

        if failed:
            raise typer.Exit(1)
