"""
Custom exception hierarchy for broker validation.

Bad field values are never raised:
they are reported as results. These exceptions only signal programmer
misuse at the boundary (wrong batch shape, bad configuration).
"""

from __future__ import annotations


class BrokerValidationError(Exception):
    """Base exception for all broker validation misuse."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class BatchInputError(BrokerValidationError):
    """A batch entry point received something that is not a list of records."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("BATCH_INPUT_INVALID", message, details)


class RecordShapeError(BrokerValidationError):
    """A batch element is not a mapping of field name to value."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("RECORD_SHAPE_INVALID", message, details)


class ConfigurationError(BrokerValidationError):
    """A configuration value could not be parsed or is out of range."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("CONFIGURATION_INVALID", message, details)
