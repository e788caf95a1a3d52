"""esbuild compiler backend.

Translates a :class:`~webbuild.plugins.base.CompileRequest` into one
``esbuild`` invocation::

    esbuild lib-a=node_modules/lib-a/index.js lib-b=... \\
        --bundle --outdir=<outdir> --format=esm --platform=browser \\
        --splitting --sourcemap --define:process.env.NODE_ENV="development"

Named entries (``<name>=<path>``) make esbuild emit one ``<name>.js`` per
entry, which is how a single pass produces both the per-dependency
pre-bundles and the application's ``bundle.js``. With ``--splitting``,
code imported by several entries (one dependency importing another) goes
into a shared ``chunk-*.js`` rather than into each entry. esbuild strips
the typed dialect's annotations itself; static type checking is a
separate :class:`~webbuild.plugins.base.TypeChecker` pass.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from webbuild.plugins.base import CompileRequest, CompileResult, Compiler
from webbuild.plugins.tools import find_node_binary

logger = logging.getLogger(__name__)

_INSTALL_HINT = "install it with: npm install --save-dev esbuild"


class EsbuildCompiler(Compiler):
    """Compile through the ``esbuild`` executable.

    Args:
        timeout: Seconds before a single pass is abandoned.
    """

    def __init__(self, timeout: int = 300) -> None:
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "esbuild"

    @property
    def description(self) -> str:
        return "Bundles, transpiles and minifies with the esbuild executable."

    def is_available(self, working_dir: Path) -> bool:
        return find_node_binary(working_dir, "esbuild") is not None

    def build_args(self, binary: str, request: CompileRequest) -> list[str]:
        """Return the full ``esbuild`` argument vector for *request*."""
        args = [binary]
        args.extend(f"{out_name}={entry}" for out_name, entry in request.entries.items())
        args.extend([
            "--bundle",
            f"--outdir={request.outdir}",
            f"--format={request.format}",
            f"--platform={request.platform}",
            f"--resolve-extensions={','.join(request.resolve_extensions)}",
            "--log-level=warning",
        ])
        if request.sourcemap:
            args.append("--sourcemap")
        if request.splitting:
            args.append("--splitting")
        if request.minify:
            args.append("--minify")
        for identifier, value in request.defines.items():
            args.append(f"--define:{identifier}={value}")
        for module in request.externals:
            args.append(f"--external:{module}")
        return args

    def compile(self, request: CompileRequest) -> CompileResult:
        binary = find_node_binary(request.working_dir, "esbuild")
        if binary is None:
            return CompileResult(errors=[f"esbuild executable not found; {_INSTALL_HINT}"])

        args = self.build_args(binary, request)
        logger.debug("Running %s", " ".join(args))
        try:
            proc = subprocess.run(
                args,
                cwd=request.working_dir,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return CompileResult(errors=[f"esbuild timed out after {self._timeout} seconds"])
        except FileNotFoundError:
            return CompileResult(errors=[f"esbuild executable not found; {_INSTALL_HINT}"])

        diagnostics = [line for line in proc.stderr.splitlines() if line.strip()]
        if proc.returncode != 0:
            return CompileResult(
                errors=diagnostics or [f"esbuild exited with status {proc.returncode}"]
            )

        outputs = sorted(p for p in request.outdir.rglob("*") if p.is_file())
        return CompileResult(outputs=outputs, warnings=diagnostics)
