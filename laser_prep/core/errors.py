"""Exceptions raised by the laser processing core."""

from __future__ import annotations


class LaserPrepError(Exception):
    """Base class for all laser_prep errors."""


class InvalidDimensionsError(LaserPrepError, ValueError):
    """Width/height are not positive or the pixel buffer does not match them."""


class InvalidSettingsError(LaserPrepError, ValueError):
    """Settings cannot be coerced into a valid configuration."""


class ProcessingCancelled(LaserPrepError):
    """Processing was abandoned because the caller asked to cancel."""
