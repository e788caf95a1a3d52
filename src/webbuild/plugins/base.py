"""Abstract collaborator contracts for compiler and type-checker backends.

webbuild never resolves, transpiles, or minifies code itself. Every
compilation pass is described by a :class:`CompileRequest` and handed to a
:class:`Compiler` backend, which writes the output files and reports what
happened in a :class:`CompileResult`. Static type checking goes through a
:class:`TypeChecker` the same way.

Backends must *report* failures in their result rather than raise: the
pipelines decide whether a failure is fatal (production, pre-bundle) or
recoverable (watch mode).

Compiler backends are registered as entry points in the
``webbuild.compilers`` group and discovered at runtime by
:class:`~webbuild.plugins.manager.PluginManager`.

Example:
    Minimal compiler backend::

        class CopyCompiler(Compiler):
            @property
            def name(self) -> str:
                return "copy"

            def compile(self, request):
                outputs = []
                for out_name, entry in request.entries.items():
                    target = request.outdir / f"{out_name}.js"
                    target.write_text(entry.read_text())
                    outputs.append(target)
                return CompileResult(outputs=outputs)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_RESOLVE_EXTENSIONS = (".mjs", ".js", ".json", ".node", ".ts", ".tsx")
"""Extensions tried, in order, when resolving extensionless application imports."""


@dataclass
class CompileRequest:
    """Description of one compilation pass.

    Attributes:
        entries: Output name -> entry file. One output file
            ``<outdir>/<name>.js`` (plus map) is produced per entry.
        outdir: Directory the backend writes into.
        working_dir: Directory module resolution starts from (the project
            root, so ``node_modules`` is found).
        minify: Minify the output.
        sourcemap: Emit a ``.map`` file next to every output.
        defines: Build-time substitutions, identifier -> literal source text
            (e.g. ``{"process.env.NODE_ENV": '"production"'}``).
        externals: Module names left as imports instead of being inlined.
        splitting: Move code shared between entries into common chunks so
            each module is instantiated once (esm output only).
        resolve_extensions: Extensions tried for extensionless imports.
        format: Output module format.
        platform: Target platform.
    """

    entries: dict[str, Path]
    outdir: Path
    working_dir: Path
    minify: bool = False
    sourcemap: bool = True
    defines: dict[str, str] = field(default_factory=dict)
    externals: list[str] = field(default_factory=list)
    splitting: bool = False
    resolve_extensions: tuple[str, ...] = DEFAULT_RESOLVE_EXTENSIONS
    format: str = "esm"
    platform: str = "browser"


@dataclass
class CompileResult:
    """Outcome of one compilation pass.

    Attributes:
        outputs: Files written into ``CompileRequest.outdir``.
        errors: Diagnostics that failed the pass. Empty on success.
        warnings: Non-fatal diagnostics.
    """

    outputs: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Compiler(ABC):
    """Base class for compiler backends.

    Subclasses implement :attr:`name` and :meth:`compile`. Instances are
    created with a no-arg constructor by the
    :class:`~webbuild.plugins.manager.PluginManager`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique backend name used in configuration (e.g. ``"esbuild"``)."""
        ...

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return ""

    def is_available(self, working_dir: Path) -> bool:
        """Return whether the backend's tooling can run from *working_dir*.

        Defaults to ``True`` for backends with no external tool.
        """
        return True

    @abstractmethod
    def compile(self, request: CompileRequest) -> CompileResult:
        """Run one compilation pass.

        Must not raise for compilation failures; report them in
        :attr:`CompileResult.errors` instead.
        """
        ...


class TypeChecker(ABC):
    """Base class for static type checkers of the typed source dialect."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def check(self, project_root: Path, tsconfig: Path) -> list[str]:
        """Type check the project and return diagnostics (empty when clean).

        Must not raise for type errors or a missing tool; report them as
        diagnostics instead.
        """
        ...
