"""Canonical Pydantic models shared across all webbuild modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Input models** -- deserialised from files in the project being built:
    :class:`ProjectMetadata` (the application's ``package.json``),
    :class:`PackageMetadata` (a dependency's ``package.json``), and
    :class:`ProjectConfig` (the optional ``webbuild.json``/``webbuild.yaml``).

**Resolved models** -- produced once per invocation and never mutated:
    :class:`BuildMode` and :class:`BuildConfiguration`.

The ordered mappings passed between the dependency stages are plain dicts,
aliased here as :data:`DependencyManifest` and :data:`PathTable`.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


DependencyManifest = dict[str, Path]
"""Ordered mapping of dependency name to its resolved module entry file."""

PathTable = dict[str, str]
"""Ordered mapping of dependency name to the path its pre-bundle is served at."""

DEPENDENCIES_DIRNAME = "dependencies"
"""Subdirectory of the output directory holding pre-bundled dependencies."""

BUNDLE_FILENAME = "bundle.js"
"""File name of the application bundle in both modes."""

TYPED_SUFFIXES = (".ts", ".tsx")
"""Entry-point suffixes that mark the statically typed source dialect."""


class BuildMode(str, enum.Enum):
    """The two mutually exclusive build modes."""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


# --- Input models ---


class ProjectMetadata(BaseModel):
    """The fields of the application's ``package.json`` that drive a build.

    Only ``main`` (the entry-point declaration) and ``dependencies`` (the
    declared runtime dependencies) are read; every other key is preserved
    in ``model_extra`` and ignored.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    main: Optional[str] = Field(
        default=None, description="Application entry point, relative to the project root"
    )
    dependencies: dict[str, str] = Field(
        default_factory=dict, description="Runtime dependency name -> version range"
    )

    @property
    def dependency_names(self) -> list[str]:
        """Declared runtime dependency names, in declaration order."""
        return list(self.dependencies)


class PackageMetadata(BaseModel):
    """The entry-related fields of a dependency's ``package.json``."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    main: Optional[str] = None
    module: Optional[str] = None
    exports: Any = Field(
        default=None, description="Conditional export map, consulted for subpath imports"
    )
    type: Optional[str] = Field(
        default=None, description="Package format: 'module' or 'commonjs'"
    )


class ProjectConfig(BaseModel):
    """Optional per-project settings from ``webbuild.json`` or ``webbuild.yaml``.

    Every field has a default so a project without a config file builds
    with the conventional ``public/`` layout. Unknown keys are rejected to
    surface typos early.

    Example::

        {
            "output_dir": "public/build",
            "port": 5000,
            "entry_overrides": {"preact": "dist/preact.module.js"},
            "watch_ignore": ["*.test.ts"]
        }
    """

    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field(
        default="public/build", description="Build output directory, relative to the project root"
    )
    serve_dir: str = Field(
        default="public", description="Directory served by the development server"
    )
    host: str = Field(default="127.0.0.1", description="Development server bind address")
    port: int = Field(default=5000, ge=0, le=65535, description="Development server port")
    fallback: str = Field(
        default="index.html",
        description="File served for unknown routes so client-side navigation works",
    )
    tsconfig: str = Field(default="tsconfig.json", description="TypeScript project file")
    compiler: str = Field(
        default="esbuild", description="Compiler backend (webbuild.compilers entry point)"
    )
    entry_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Manually curated dependency entry files, relative to each package root",
    )
    watch_ignore: list[str] = Field(
        default_factory=list,
        description="Gitignore-style patterns of source changes that never trigger a rebuild",
    )


# --- Resolved configuration ---


class BuildConfiguration(BaseModel):
    """Immutable configuration for one invocation.

    Created once by :func:`~webbuild.config.resolve_build_config` and passed
    explicitly to every component. The model is frozen: assigning to any
    field raises a validation error.
    """

    model_config = ConfigDict(frozen=True)

    mode: BuildMode
    use_static_type_check: bool
    verbose: bool = False
    project_root: Path
    entry_point_path: Path
    output_dir: Path
    serve_dir: Path
    host: str = "127.0.0.1"
    port: int = 5000
    fallback: str = "index.html"
    tsconfig: Path
    compiler: str = "esbuild"
    entry_overrides: dict[str, str] = Field(default_factory=dict)
    watch_ignore: tuple[str, ...] = ()

    @property
    def is_development(self) -> bool:
        return self.mode == BuildMode.DEVELOPMENT

    @property
    def dependencies_dir(self) -> Path:
        """Where pre-bundled dependencies are written in development mode."""
        return self.output_dir / DEPENDENCIES_DIRNAME

    @property
    def uses_typed_dialect(self) -> bool:
        """Whether the entry point is written in the statically typed dialect."""
        return self.entry_point_path.suffix in TYPED_SUFFIXES
