"""Exception types raised by the DRIFT lab."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised at setup when models, links or inputs are inconsistent.

    Always detected before the first tick of a run.
    """


class ExecutionError(RuntimeError):
    """Raised when a model fails to produce an output during a tick."""
