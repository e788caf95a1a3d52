"""Static type checking of the typed source dialect via ``tsc``."""

from webbuild.plugins.tsc.plugin import TscTypeChecker

__all__ = ["TscTypeChecker"]
