"""TypeScript compiler (``tsc``) type checker.

Runs ``tsc --noEmit -p <tsconfig>`` from the project root. ``tsc`` prints
one diagnostic per line on stdout and exits non-zero when any error is
found; those lines are returned verbatim.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from webbuild.plugins.base import TypeChecker
from webbuild.plugins.tools import find_node_binary


class TscTypeChecker(TypeChecker):
    """Static type checking through the ``tsc`` executable."""

    def __init__(self, timeout: int = 300) -> None:
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "tsc"

    def check(self, project_root: Path, tsconfig: Path) -> list[str]:
        binary = find_node_binary(project_root, "tsc")
        if binary is None:
            return ["tsc executable not found; install it with: npm install --save-dev typescript"]

        args = [binary, "--noEmit", "--pretty", "false"]
        if tsconfig.is_file():
            args.extend(["-p", str(tsconfig)])

        try:
            proc = subprocess.run(
                args,
                cwd=project_root,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return [f"tsc timed out after {self._timeout} seconds"]
        except FileNotFoundError:
            return ["tsc executable not found; install it with: npm install --save-dev typescript"]

        if proc.returncode == 0:
            return []
        lines = [line for line in (proc.stdout + proc.stderr).splitlines() if line.strip()]
        return lines or [f"tsc exited with status {proc.returncode}"]
