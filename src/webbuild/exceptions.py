"""Exception hierarchy for webbuild.

All exceptions inherit from :class:`WebbuildError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`webbuild.exit_codes`.
The top-level error handler in :func:`webbuild.app.main` catches
``WebbuildError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    WebbuildError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- ConfigurationError   (exit 3)
    +-- PrebundleError       (exit 4)
    +-- CompileError         (exit 5)
    +-- PluginError          (exit 10)

Only :class:`CompileError` is ever recovered from, and only inside the
development watch loop.
"""

from __future__ import annotations

from webbuild.exit_codes import (
    EXIT_COMPILE_ERROR,
    EXIT_CONFIGURATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
    EXIT_PREBUNDLE_ERROR,
)


class WebbuildError(Exception):
    """Base exception for all webbuild errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`webbuild.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(WebbuildError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConfigurationError(WebbuildError):
    """Raised for a missing or invalid ``package.json``, entry point, or project config."""

    exit_code = EXIT_CONFIGURATION_ERROR


class PrebundleError(WebbuildError):
    """Raised when a declared dependency fails to resolve or to pre-bundle."""

    exit_code = EXIT_PREBUNDLE_ERROR


class CompileError(WebbuildError):
    """Raised when a compilation pass fails.

    Args:
        message: Summary line printed to stderr.
        diagnostics: Individual diagnostics reported by the compiler or
            type checker, printed after the summary.
    """

    exit_code = EXIT_COMPILE_ERROR

    def __init__(self, message: str, diagnostics: list[str] | None = None):
        super().__init__(message)
        self.diagnostics: list[str] = list(diagnostics or [])

    def __str__(self) -> str:
        message = super().__str__()
        if not self.diagnostics:
            return message
        return "\n".join([message, *(f"  {line}" for line in self.diagnostics)])


class PluginError(WebbuildError):
    """Raised when a compiler backend fails to load or its tool is not installed."""

    exit_code = EXIT_PLUGIN_ERROR
