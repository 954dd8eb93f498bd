"""
Error taxonomy for the ration audit engine.

All validation happens before the first calculation step is produced, so a
raised error never leaves a partial audit trail behind.
"""


class RationCalculationError(Exception):
    """Base class for ration audit errors."""

    def __init__(self, message, field=None, value=None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value


class InvalidProfile(RationCalculationError):
    """Negative or out-of-range physiological inputs."""


class InvalidCapacity(RationCalculationError):
    """Computed intake capacity is zero or negative."""


class MissingFeedData(RationCalculationError):
    """A feed lacks a required nutrient value."""


class InvalidFeedInput(RationCalculationError):
    """A feed line carries an impossible dry-matter percentage or basis."""
