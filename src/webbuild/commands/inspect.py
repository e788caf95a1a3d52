"""Inspect commands -- examine what a build would do without building.

Provides the ``webbuild inspect`` sub-command group:

* ``inspect deps`` -- every declared dependency with its resolved entry
  file and the path its pre-bundle is served at.
* ``inspect config`` -- the resolved build configuration as JSON.
"""

from __future__ import annotations

from pathlib import Path

import typer

from webbuild.exceptions import WebbuildError
from webbuild.output import error, get_output, info


inspect_app = typer.Typer(no_args_is_help=True)


def _project_option() -> Path:
    return typer.Option(
        Path("."), "--project", "-C", help="Project root containing package.json.", file_okay=False
    )


@inspect_app.command("deps")
def inspect_deps(project: Path = _project_option()) -> None:
    """List dependencies with their resolved entry files and served paths.

    Example::

        webbuild inspect deps
        webbuild --json inspect deps
    """
    from webbuild.config import resolve_build_config
    from webbuild.manifest import build_manifest
    from webbuild.paths import build_path_table

    try:
        config, metadata = resolve_build_config(project, dev=True)
        manifest = build_manifest(config, metadata)
    except WebbuildError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    if not manifest:
        info("No runtime dependencies declared.")
        return

    table = build_path_table(manifest)
    rows = [
        [name, _relative(path, config.project_root), table[name]]
        for name, path in manifest.items()
    ]
    get_output().print_table(["Dependency", "Entry", "Served At"], rows, title="Dependencies")


@inspect_app.command("config")
def inspect_config(
    project: Path = _project_option(),
    dev: bool = typer.Option(False, "--dev", "--watch", "-d", "-w", help="Resolve for development mode."),
) -> None:
    """Print the resolved build configuration as JSON."""
    from webbuild.config import resolve_build_config

    try:
        config, _ = resolve_build_config(project, dev=dev)
    except WebbuildError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    get_output().print_json(config.model_dump(mode="json"))


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
