"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~webbuild.exceptions.WebbuildError` subclass.
CI scripts can inspect the exit code to determine which stage of the build
failed without parsing stderr.

Example::

    $ webbuild build
    $ echo $?
    5   # EXIT_COMPILE_ERROR -- the application failed to compile
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIGURATION_ERROR = 3
"""Project metadata, entry point, or project config is missing or invalid."""

EXIT_PREBUNDLE_ERROR = 4
"""A declared dependency could not be resolved or pre-bundled."""

EXIT_COMPILE_ERROR = 5
"""The application failed to compile (syntax, type check, or transform error)."""

EXIT_PLUGIN_ERROR = 10
"""A compiler backend failed to load or is not installed."""

EXIT_INTERRUPTED = 130
"""The process was interrupted (Ctrl-C)."""
