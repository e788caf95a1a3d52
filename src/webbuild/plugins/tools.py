"""Locate Node.js command-line tools used by the built-in backends."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Optional


def find_node_binary(working_dir: Path, name: str) -> Optional[str]:
    """Return the path of the *name* executable, or ``None`` when not installed.

    The project's own ``node_modules/.bin`` wins over ``PATH`` so the
    version pinned in ``package.json`` is used.
    """
    bin_dir = working_dir / "node_modules" / ".bin"
    candidates = [name, f"{name}.cmd"] if os.name == "nt" else [name]
    for candidate in candidates:
        local = bin_dir / candidate
        if local.is_file():
            return str(local)
    return shutil.which(name)
