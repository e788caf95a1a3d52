"""Collaborator contracts, backend discovery, and lifecycle events.

This package is the seam between webbuild's orchestration and the tools
that actually transform code.

Key classes:

* :class:`Compiler` / :class:`TypeChecker` -- Abstract backends that report
  failures in their results instead of raising.
* :class:`CompileRequest` / :class:`CompileResult` -- One compilation pass
  in and out.
* :class:`PluginManager` -- Resolves a backend name to an instance,
  discovering third-party backends via the ``webbuild.compilers``
  entry-point group.
* :class:`HookRunner` -- Delivers build lifecycle events to observers such
  as the :class:`~webbuild.reporter.EventReporter`.
"""

from webbuild.plugins.base import CompileRequest, CompileResult, Compiler, TypeChecker
from webbuild.plugins.hooks import HookRunner
from webbuild.plugins.manager import PluginManager

__all__ = [
    "CompileRequest",
    "CompileResult",
    "Compiler",
    "TypeChecker",
    "HookRunner",
    "PluginManager",
]
