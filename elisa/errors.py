"""Exception types raised by the elisa package."""

from __future__ import annotations


class ElisaError(Exception):
    """Base class for errors raised by this package."""


class InsufficientDataError(ElisaError, ValueError):
    """Raised when too few valid standard points remain for a 4PL fit."""


class NotFittedError(ElisaError, RuntimeError):
    """Raised when curve parameters are required but none are available."""
