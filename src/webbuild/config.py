"""Project metadata loading and build configuration resolution.

This module is the only place that reads invocation-level inputs:

* **Project metadata** -- the application's ``package.json``, deserialised
  into :class:`~webbuild.models.ProjectMetadata` by
  :func:`load_project_metadata`.
* **Project config** -- an optional ``webbuild.json``, ``webbuild.yaml`` or
  ``webbuild.yml`` at the project root, deserialised into
  :class:`~webbuild.models.ProjectConfig` by :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_build_config` merges CLI
  flags, environment variables, project config, and defaults into the
  frozen :class:`~webbuild.models.BuildConfiguration` that every other
  component receives.
* **Directory layout** -- :func:`get_data_dir` returns the XDG-compliant
  location for crash logs.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from webbuild.exceptions import ConfigurationError, InvalidUsageError
from webbuild.models import BuildConfiguration, BuildMode, ProjectConfig, ProjectMetadata

_APP_NAME = "webbuild"
_METADATA_FILENAME = "package.json"
_PROJECT_CONFIG_FILENAMES = ("webbuild.json", "webbuild.yaml", "webbuild.yml")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/webbuild/`` (default ``~/.local/share/webbuild/``).
    On macOS/Windows: ``~/.webbuild/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project metadata ---


def load_project_metadata(project_root: Path) -> ProjectMetadata:
    """Load the application's ``package.json``.

    Args:
        project_root: Directory containing ``package.json``.

    Returns:
        The deserialised :class:`~webbuild.models.ProjectMetadata`.

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, or
            fails validation.
    """
    path = project_root / _METADATA_FILENAME
    if not path.is_file():
        raise ConfigurationError(f"No {_METADATA_FILENAME} found in {project_root}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ProjectMetadata.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid project metadata at {path}: {exc}") from exc


# --- Project config ---


def find_project_config(project_root: Path) -> Optional[Path]:
    """Return the first project config file present in *project_root*, if any."""
    for filename in _PROJECT_CONFIG_FILENAMES:
        path = project_root / filename
        if path.is_file():
            return path
    return None


def load_project_config(project_root: Path) -> ProjectConfig:
    """Load project-local configuration.

    ``webbuild.json`` takes priority over ``webbuild.yaml`` and
    ``webbuild.yml``. A project without a config file gets the defaults.

    Returns:
        The deserialised :class:`~webbuild.models.ProjectConfig`.

    Raises:
        ConfigurationError: If the file cannot be parsed or contains
            unknown or invalid keys.
    """
    path = find_project_config(project_root)
    if path is None:
        return ProjectConfig()
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data: Any = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
        return ProjectConfig.model_validate(data)
    except (json.JSONDecodeError, yaml.YAMLError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid project config at {path}: {exc}") from exc


# --- Precedence resolution ---


def resolve_type_check(mode: BuildMode, typescript: Optional[bool]) -> bool:
    """Decide whether static type checking runs.

    Production builds always type check. Development builds type check
    unless the operator explicitly opted into the faster untyped path
    (``--no-ts``).

    Args:
        mode: The requested build mode.
        typescript: The explicit ``--ts/--no-ts`` value, or ``None`` when
            the flag was not given.
    """
    if mode == BuildMode.PRODUCTION:
        return True
    if typescript is None:
        return True
    return typescript


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{value}'") from None


def resolve_build_config(
    project_root: Path,
    *,
    dev: bool = False,
    typescript: Optional[bool] = None,
    verbose: bool = False,
    cli_output_dir: Optional[str] = None,
    cli_host: Optional[str] = None,
    cli_port: Optional[int] = None,
    cli_compiler: Optional[str] = None,
) -> tuple[BuildConfiguration, ProjectMetadata]:
    """Resolve the build configuration with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments)
        2. Environment variables (``WEBBUILD_OUTPUT_DIR``, ``WEBBUILD_HOST``,
           ``WEBBUILD_PORT``, ``WEBBUILD_COMPILER``)
        3. Project config (``webbuild.json`` / ``webbuild.yaml``)
        4. Defaults

    Args:
        project_root: Root of the application (the directory holding
            ``package.json``).
        dev: Development (watch) mode requested.
        typescript: Explicit type-check flag, or ``None`` when not given.
        verbose: Verbose reporting requested.

    Returns:
        A tuple of ``(configuration, project_metadata)``.

    Raises:
        ConfigurationError: If metadata or project config is invalid, no
            entry point is declared, the entry point does not exist, or the
            output directory would contain the entry point, or (development
            mode) the output directory is outside the served directory.
        InvalidUsageError: If ``cli_port`` is out of range.
    """
    root = project_root.resolve()
    metadata = load_project_metadata(root)
    project = load_project_config(root)

    if not metadata.main:
        raise ConfigurationError(
            f"{root / _METADATA_FILENAME} does not declare an entry point ('main')"
        )
    entry = (root / metadata.main).resolve()
    if not entry.is_file():
        raise ConfigurationError(
            f"Entry point '{metadata.main}' not found relative to {root}"
        )

    if cli_port is not None and not 0 <= cli_port <= 65535:
        raise InvalidUsageError(f"--port must be between 0 and 65535, got {cli_port}")

    output_dir = cli_output_dir or os.environ.get("WEBBUILD_OUTPUT_DIR") or project.output_dir
    resolved_output = (root / output_dir).resolve()
    if resolved_output == root or resolved_output in entry.parents:
        # the output directory is cleared before every build
        raise ConfigurationError(
            f"Output directory {resolved_output} contains the project sources"
        )

    serve_dir = (root / project.serve_dir).resolve()
    if dev and serve_dir not in resolved_output.parents:
        # the dev server only serves files below serve_dir
        raise ConfigurationError(
            f"Output directory {resolved_output} is outside the served directory {serve_dir}"
        )

    host = cli_host or os.environ.get("WEBBUILD_HOST") or project.host
    port = cli_port
    if port is None:
        port = _env_int("WEBBUILD_PORT")
    if port is None:
        port = project.port
    compiler = cli_compiler or os.environ.get("WEBBUILD_COMPILER") or project.compiler

    mode = BuildMode.DEVELOPMENT if dev else BuildMode.PRODUCTION
    config = BuildConfiguration(
        mode=mode,
        use_static_type_check=resolve_type_check(mode, typescript),
        verbose=verbose,
        project_root=root,
        entry_point_path=entry,
        output_dir=resolved_output,
        serve_dir=serve_dir,
        host=host,
        port=port,
        fallback=project.fallback,
        tsconfig=root / project.tsconfig,
        compiler=compiler,
        entry_overrides=dict(project.entry_overrides),
        watch_ignore=tuple(project.watch_ignore),
    )
    return config, metadata
