"""webbuild -- Production and development builds for web applications.

This package turns a web application's source tree into deployable
artifacts in one of two modes:

* **production** -- a single minified ``bundle.js`` with every dependency
  inlined.
* **development** -- a one-shot pre-bundle of each third-party dependency
  into ``dependencies/<name>.js``, followed by an incremental rebuild loop
  that only recompiles application source, serves the output over HTTP and
  triggers live reload.

Typical workflow::

    webbuild build            # production bundle
    webbuild build --dev      # pre-bundle dependencies, then watch

Compilation itself (module resolution, transpilation, minification) is
delegated to a compiler backend registered under the ``webbuild.compilers``
entry-point group. The built-in backend shells out to ``esbuild``.

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: Project metadata loading and build configuration resolution.
    manifest: Dependency entry-point resolution.
    paths: Served-path table and import rewriting for externalized dependencies.
    prebundle: One-shot dependency pre-bundle for development mode.
    pipeline: Production pipeline and incremental application builds.
    watch: Rebuild loop state machine, file watcher and dev server.
    reporter: Build lifecycle rendering.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
