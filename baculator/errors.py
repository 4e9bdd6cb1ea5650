"""Validation errors raised before any BAC math runs.

Only structurally invalid input raises. A threshold that is never reached
within the search horizon is a normal result, not an error.
"""


class BACValidationError(ValueError):
    """Base class for rejected engine input."""


class InvalidProfile(BACValidationError):
    """Weight is not positive or sex is not recognised."""


class InvalidDrink(BACValidationError):
    """A drink record cannot be used (non-positive standards, bad timestamp)."""


class InvalidConfig(BACValidationError):
    """An EngineConfig value is out of range."""
