"""Output directory handling shared by every compilation pass.

A pass never writes straight into the output directory. The compiler
writes into a temporary staging directory created next to the output
directory, and only a successful pass is published by moving the staged
files into place with :func:`os.replace`. A failed pass therefore leaves
whatever was in the output directory before it started.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

STAGING_PREFIX = ".webbuild-stage-"
"""Name prefix of staging directories; the file watcher ignores them."""


def clear_output_dir(path: Path) -> None:
    """Remove everything inside *path*, creating it if missing."""
    if path.is_dir():
        for child in path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
    path.mkdir(parents=True, exist_ok=True)


@contextmanager
def staging_dir(output_dir: Path) -> Iterator[Path]:
    """Yield a fresh staging directory beside *output_dir*, removed on exit.

    Staging on the same filesystem as the output keeps :func:`publish` a
    sequence of atomic renames.
    """
    output_dir.parent.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=output_dir.parent))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def publish(staging: Path, target: Path) -> list[Path]:
    """Move every top-level entry of *staging* into *target*.

    Existing files of the same name are replaced; entries of *target*
    that are not in *staging* are left alone.

    Returns:
        The published paths inside *target*.
    """
    target.mkdir(parents=True, exist_ok=True)
    published: list[Path] = []
    for entry in sorted(staging.iterdir()):
        destination = target / entry.name
        if destination.is_dir() and not destination.is_symlink():
            shutil.rmtree(destination)
        os.replace(entry, destination)
        published.append(destination)
    return published
