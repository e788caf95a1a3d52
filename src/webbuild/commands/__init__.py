"""Built-in CLI sub-commands for webbuild.

* :mod:`~webbuild.commands.build` -- run a production or development build.
* :mod:`~webbuild.commands.inspect` -- show resolved dependencies and
  configuration.

``build`` is a plain callback registered directly on the root app;
``inspect`` is a :class:`typer.Typer` sub-application.
"""
