"""Exceptions raised by the pendulum engine."""

from __future__ import annotations


class PendulumError(Exception):
    """Base class for all engine errors."""


class InvalidParameterError(PendulumError, ValueError):
    """A setter or record received a value outside its valid range."""


class ConfigError(PendulumError):
    """A configuration file could not be read or validated."""
