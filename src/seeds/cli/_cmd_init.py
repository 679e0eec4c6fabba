"""Initialization command for seeds CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from seeds.config import default_config, get_config_path, sanitize_project_name, save_config
from seeds.constants import ISSUES_FILE, SEEDS_DIR_NAME, SEEDS_GITIGNORE_ENTRIES, TEMPLATES_FILE
from seeds.doctor import ensure_gitattributes

from ._json_state import echo, echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register the init command."""

    @app.command()
    def init(
        project: str | None = typer.Option(
            None,
            "--project",
            "-p",
            help="Project name used as issue ID prefix (default: directory name)",
        ),
        seeds_dir: str | None = typer.Option(
            None,
            "--seeds-dir",
            help="Path of the .seeds directory to create (default: ./.seeds)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """Initialize .seeds/ in the current directory.

        Creates config.yaml, empty issue and template logs, a .gitignore for
        lock files, and merge=union entries in the project .gitattributes.
        Running it again on an initialized directory changes nothing.
        """
        is_json_output(json_output)
        seeds_path = Path(seeds_dir) if seeds_dir else Path.cwd() / SEEDS_DIR_NAME

        try:
            if get_config_path(seeds_path).exists():
                if is_json_output(json_output):
                    echo_json("init", dir=str(seeds_path), created=False)
                else:
                    echo(f"✓ Already initialized: {seeds_path}")
                return

            seeds_path.mkdir(parents=True, exist_ok=True)
            if project is None:
                project = sanitize_project_name(seeds_path.resolve().parent.name)
            save_config(seeds_path, default_config(project))

            for name in (ISSUES_FILE, TEMPLATES_FILE):
                (seeds_path / name).touch()
            (seeds_path / ".gitignore").write_text(
                "".join(f"{entry}\n" for entry in SEEDS_GITIGNORE_ENTRIES),
            )
            gitattributes_msg = ensure_gitattributes(seeds_path)
        except OSError as e:
            echo_error(f"Failed to initialize {seeds_path}: {e}", "init")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("init", dir=str(seeds_path), created=True, project=project)
            return
        echo(f"✓ Created {get_config_path(seeds_path)} (project: {project})")
        if gitattributes_msg:
            echo(f"✓ {gitattributes_msg}")
        echo(f"\n✓ Initialized {SEEDS_DIR_NAME}/ in {seeds_path.resolve().parent}")
