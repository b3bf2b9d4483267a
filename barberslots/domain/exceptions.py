"""
Domain-specific exception hierarchy for the slot scheduling engine.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeError(SchedulingError, ValueError):
    """Raised when a wall-clock time value cannot be parsed."""


class InvalidDurationError(SchedulingError, ValueError):
    """Raised when a service duration is not a positive number of minutes."""


class StoreError(SchedulingError):
    """Raised when schedule data cannot be fetched from or written to the store."""
