"""Served paths of pre-bundled dependencies and import rewriting.

In development mode the application bundle does not inline third-party
code. Each dependency is compiled once into
``<output>/dependencies/<name>.js`` and the application's imports of that
dependency are redirected to the pre-bundled file:

* :func:`build_path_table` maps every manifest key to its served path.
* :func:`rewrite_imports` rewrites the module specifiers of externalized
  imports in compiled output using that table.
* :func:`unbundled_imports` finds imports the table cannot serve.

Manifest keys are dependency names or, for subpath imports the application
uses (``preact/hooks``), the full specifier.
"""

from __future__ import annotations

import re
from pathlib import Path

from webbuild.models import DEPENDENCIES_DIRNAME, DependencyManifest, PathTable

_SPECIFIER_RE = re.compile(
    r"""(?P<prefix>\bfrom\s*|\bimport\s*\(\s*|\bimport\s*)"""
    r"""(?P<quote>["'])(?P<specifier>[^"'\r\n]+)(?P=quote)"""
)


def served_path(name: str) -> str:
    """Return the bundle-relative path dependency *name* is served at."""
    return f"./{DEPENDENCIES_DIRNAME}/{name}.js"


def package_name(specifier: str) -> str:
    """Return the package part of a bare module specifier.

    ``"preact/hooks"`` -> ``"preact"``, ``"@scope/pkg/sub"`` -> ``"@scope/pkg"``.
    """
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def import_specifiers(source: str) -> list[str]:
    """Return the module specifiers of every import and re-export in *source*."""
    return [match.group("specifier") for match in _SPECIFIER_RE.finditer(source)]


def build_path_table(manifest: DependencyManifest) -> PathTable:
    """Map each dependency in *manifest* to its served path.

    Pure and order-preserving; an empty manifest yields an empty table.
    """
    return {name: served_path(name) for name in manifest}


def rewrite_imports(source: str, table: PathTable) -> str:
    """Point externalized imports in *source* at their pre-bundled files.

    Rewrites the specifier of ``import ... from "x"``, ``export ... from
    "x"``, ``import "x"`` and ``import("x")`` when ``x`` is exactly a key of
    *table*. Every other string is left untouched. Quote style is preserved.
    """
    if not table:
        return source

    def _replace(match: re.Match[str]) -> str:
        target = table.get(match.group("specifier"))
        if target is None:
            return match.group(0)
        quote = match.group("quote")
        return f"{match.group('prefix')}{quote}{target}{quote}"

    return _SPECIFIER_RE.sub(_replace, source)


def rewrite_bundle_file(path: Path, table: PathTable) -> bool:
    """Apply :func:`rewrite_imports` to a compiled file in place.

    Returns:
        ``True`` if the file changed.
    """
    original = path.read_text(encoding="utf-8")
    rewritten = rewrite_imports(original, table)
    if rewritten == original:
        return False
    path.write_text(rewritten, encoding="utf-8")
    return True


def unbundled_imports(source: str, table: PathTable) -> list[str]:
    """Return imports in *source* of a pre-bundled package with no entry in *table*.

    The backend externalizes a package together with all of its subpaths,
    so an import such as ``preact/debug`` that was not pre-bundled stays a
    bare specifier a browser cannot load.
    """
    packages = {package_name(name) for name in table}
    missing: list[str] = []
    for specifier in import_specifiers(source):
        if specifier in table or specifier in missing:
            continue
        if package_name(specifier) in packages:
            missing.append(specifier)
    return missing
