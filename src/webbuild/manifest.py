"""Dependency entry-point resolution.

Before development mode can pre-bundle third-party code it has to know
which file inside each installed package is the module entry point. The
choice is made by :func:`resolve_entry`, a pure function over the
package's metadata, and applied to every declared runtime dependency by
:func:`build_manifest`.

Resolution order (first match wins):

1. The package is itself an ECMAScript module (``"type": "module"``):
   its explicit module entry, ``module`` when present, else ``main``.
2. The ``module`` field.
3. A manually curated override from the project config's
   ``entry_overrides``.
4. The ``main`` field.

Subpath imports of a dependency (``preact/hooks``) found in the
application's sources get their own manifest entry, resolved through the
package's ``exports`` map, a nested ``package.json``, or the file itself.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Optional

from webbuild.exceptions import PrebundleError
from webbuild.models import BuildConfiguration, DependencyManifest, PackageMetadata, ProjectMetadata
from webbuild.paths import import_specifiers, package_name

_ENTRY_SUFFIXES = (".js", ".mjs", ".cjs", ".json")
_SOURCE_SUFFIXES = (".ts", ".tsx", ".mts", ".js", ".jsx", ".mjs", ".cjs")
_EXPORT_CONDITIONS = ("browser", "import", "module", "default")


def resolve_entry(metadata: PackageMetadata, override: Optional[str] = None) -> str:
    """Pick a dependency's module entry path, relative to its package root.

    Args:
        metadata: The dependency's ``package.json`` fields.
        override: Manually curated entry for this dependency, if any.

    Returns:
        The entry path exactly as declared.

    Raises:
        PrebundleError: If the package declares no usable entry and no
            override exists.

    Example::

        >>> resolve_entry(PackageMetadata(main="a.js", module="b.js", type="module"))
        'b.js'
        >>> resolve_entry(PackageMetadata(main="a.js", type="commonjs"))
        'a.js'
    """
    if metadata.type == "module" and (metadata.module or metadata.main):
        return metadata.module or metadata.main  # type: ignore[return-value]
    if metadata.module:
        return metadata.module
    if override:
        return override
    if metadata.main:
        return metadata.main
    raise PrebundleError(
        f"Package '{metadata.name or '?'}' declares no 'module' or 'main' entry "
        "and has no entry override"
    )


def package_dir(project_root: Path, name: str) -> Path:
    """Return the installed location of dependency *name*."""
    return project_root / "node_modules" / name


def load_package_metadata(root: Path, name: str) -> PackageMetadata:
    """Read ``package.json`` from an installed dependency.

    Raises:
        PrebundleError: If the package is not installed or its metadata is
            not valid JSON.
    """
    path = root / "package.json"
    if not path.is_file():
        raise PrebundleError(
            f"Dependency '{name}' is not installed (no {path}); run npm install"
        )
    try:
        return PackageMetadata.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise PrebundleError(f"Invalid package metadata for '{name}' at {path}: {exc}") from exc


def locate_entry_file(root: Path, entry: str) -> Optional[Path]:
    """Resolve a declared entry to an existing file the way Node does.

    Tries the path as given, then with each of ``.js``, ``.mjs``, ``.cjs``,
    ``.json`` appended, then ``index.js`` when the path is a directory.
    """
    candidate = (root / entry).resolve()
    if candidate.is_file():
        return candidate
    for suffix in _ENTRY_SUFFIXES:
        with_suffix = candidate.with_name(candidate.name + suffix)
        if with_suffix.is_file():
            return with_suffix
    index = candidate / "index.js"
    if index.is_file():
        return index
    return None


def find_subpath_imports(config: BuildConfiguration, packages: set[str]) -> list[str]:
    """Return the subpath imports of *packages* used by the application's sources.

    Scans the entry point's directory tree, skipping ``node_modules``,
    hidden directories and the output directory.
    """
    found: set[str] = set()
    source_root = config.entry_point_path.parent
    for dirpath, dirnames, filenames in os.walk(source_root):
        current = Path(dirpath)
        dirnames[:] = [
            d for d in dirnames
            if d != "node_modules" and not d.startswith(".") and current / d != config.output_dir
        ]
        for filename in filenames:
            if not filename.endswith(_SOURCE_SUFFIXES):
                continue
            source = (current / filename).read_text(encoding="utf-8", errors="replace")
            for specifier in import_specifiers(source):
                if specifier not in packages and package_name(specifier) in packages:
                    found.add(specifier)
    return sorted(found)


def _conditional_target(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for condition in _EXPORT_CONDITIONS:
            if condition in value:
                target = _conditional_target(value[condition])
                if target:
                    return target
    if isinstance(value, list):
        for item in value:
            target = _conditional_target(item)
            if target:
                return target
    return None


def resolve_subpath_entry(root: Path, metadata: PackageMetadata, subpath: str) -> Optional[Path]:
    """Resolve ``<package>/<subpath>`` to a file inside the package at *root*.

    Tries, in order: the ``exports`` map entry for ``./<subpath>``, a
    nested ``<subpath>/package.json`` resolved with :func:`resolve_entry`,
    and the path itself as with :func:`locate_entry_file`.
    """
    exports = metadata.exports
    if isinstance(exports, dict) and f"./{subpath}" in exports:
        target = _conditional_target(exports[f"./{subpath}"])
        if target:
            return locate_entry_file(root, target)
    nested = root / subpath
    if (nested / "package.json").is_file():
        nested_metadata = load_package_metadata(nested, f"{metadata.name}/{subpath}")
        return locate_entry_file(nested, resolve_entry(nested_metadata))
    return locate_entry_file(root, subpath)


def build_manifest(
    config: BuildConfiguration,
    metadata: ProjectMetadata,
    on_resolved: Optional[Callable[[str, Path], None]] = None,
) -> DependencyManifest:
    """Resolve the module entry of every declared runtime dependency.

    Args:
        config: The invocation's configuration (project root and entry
            overrides).
        metadata: The application's metadata; its ``dependencies`` keys
            become the manifest keys, in declaration order, followed by
            the subpath imports found by :func:`find_subpath_imports`.
        on_resolved: Called with ``(name, path)`` after each resolution.

    Returns:
        An ordered ``name -> entry file`` mapping.

    Raises:
        PrebundleError: If any dependency is missing, declares no entry
            or has no entry file, or if a subpath import does not
            resolve to a file.
    """
    manifest: DependencyManifest = {}
    for name in metadata.dependency_names:
        root = package_dir(config.project_root, name)
        entry = resolve_entry(load_package_metadata(root, name), config.entry_overrides.get(name))
        path = locate_entry_file(root, entry)
        if path is None:
            raise PrebundleError(f"Entry '{entry}' of dependency '{name}' not found in {root}")
        manifest[name] = path
        if on_resolved is not None:
            on_resolved(name, path)

    for specifier in find_subpath_imports(config, set(manifest)):
        name = package_name(specifier)
        root = package_dir(config.project_root, name)
        path = resolve_subpath_entry(root, load_package_metadata(root, name), specifier[len(name) + 1:])
        if path is None:
            raise PrebundleError(f"Import '{specifier}' does not resolve to a file in {root}")
        manifest[specifier] = path
        if on_resolved is not None:
            on_resolved(specifier, path)
    return manifest
