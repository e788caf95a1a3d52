"""esbuild compiler backend -- the default ``webbuild.compilers`` entry.

The main export is :class:`EsbuildCompiler`, which shells out to the
``esbuild`` executable found in the project's ``node_modules/.bin`` or on
``PATH``.
"""

from webbuild.plugins.esbuild.plugin import EsbuildCompiler

__all__ = ["EsbuildCompiler"]
