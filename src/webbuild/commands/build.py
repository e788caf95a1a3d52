"""The ``webbuild build`` command.

Resolves the invocation's :class:`~webbuild.models.BuildConfiguration` and
runs either the production pipeline or the development session::

    webbuild build                  # production bundle
    webbuild build --dev            # pre-bundle, then watch, serve, reload
    webbuild build -w --no-ts -v    # watch without type checking, verbose

Flag names are case-insensitive (``--DEV`` and ``--Watch`` work) because
the root application lower-cases option names before matching.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from webbuild.exceptions import PluginError, WebbuildError
from webbuild.models import BuildConfiguration, ProjectMetadata
from webbuild.output import error, get_output, suggest
from webbuild.plugins.base import Compiler, TypeChecker
from webbuild.plugins.hooks import ConfigurationResolved, HookRunner
from webbuild.reporter import EventReporter


def create_backends(config: BuildConfiguration) -> tuple[Compiler, TypeChecker]:
    """Instantiate the configured compiler backend and the type checker.

    Raises:
        PluginError: If the backend is unknown or its tool is not installed.
    """
    from webbuild.plugins.manager import PluginManager

    manager = PluginManager()
    manager.discover()
    compiler = manager.get_compiler(config.compiler)
    if not compiler.is_available(config.project_root):
        raise PluginError(
            f"Compiler '{compiler.name}' is not installed for {config.project_root}"
        )
    return compiler, manager.get_type_checker()


def run_build(config: BuildConfiguration, metadata: ProjectMetadata, hooks: HookRunner) -> None:
    """Run the build described by *config* to completion.

    Production returns once the bundle is published. Development blocks
    in the rebuild loop until the process is interrupted.
    """
    from webbuild.pipeline import ProductionPipeline
    from webbuild.watch import DevelopmentSession

    compiler, type_checker = create_backends(config)
    if config.is_development:
        DevelopmentSession(config, metadata, compiler, type_checker, hooks).run()
    else:
        ProductionPipeline(config, compiler, type_checker, hooks).run()


def build_command(
    ctx: typer.Context,
    dev: bool = typer.Option(
        False, "--dev", "--watch", "-d", "-w",
        help="Development mode: pre-bundle dependencies, then rebuild on change.",
    ),
    typescript: Optional[bool] = typer.Option(
        None, "--ts/--no-ts", "--typescript/--no-typescript",
        help="Static type checking. Always on in production; on by default in development.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show configuration and dependency resolution."
    ),
    project: Path = typer.Option(
        Path("."), "--project", "-C",
        help="Project root containing package.json.",
        file_okay=False,
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory (default: public/build)."
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Dev server address."),
    port: Optional[int] = typer.Option(None, "--port", help="Dev server port (default: 5000)."),
    compiler: Optional[str] = typer.Option(
        None, "--compiler", help="Compiler backend (default: esbuild)."
    ),
) -> None:
    """Build the application.

    Production mode clears the output directory and writes one minified
    ``bundle.js`` (+ source map) with every dependency inlined.

    Development mode writes each dependency once to
    ``dependencies/<name>.js``, then rebuilds only application source on
    every change, serves the project's ``public/`` directory and bumps the
    live-reload counter after each successful build. Compile errors are
    reported and the loop keeps running.
    """
    from webbuild.config import resolve_build_config

    obj = ctx.obj or {}
    verbose = verbose or bool(obj.get("verbose"))

    try:
        config, metadata = resolve_build_config(
            project,
            dev=dev,
            typescript=typescript,
            verbose=verbose,
            cli_output_dir=output_dir,
            cli_host=host,
            cli_port=port,
            cli_compiler=compiler,
        )
        get_output().clear_screen()
        hooks = HookRunner([EventReporter(verbose=config.verbose)])
        hooks.emit(ConfigurationResolved(config))
        run_build(config, metadata, hooks)
    except PluginError as exc:
        error(str(exc))
        suggest("Install the compiler: npm install --save-dev esbuild")
        raise typer.Exit(code=exc.exit_code)
    except WebbuildError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
