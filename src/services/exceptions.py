"""
Service-level exceptions.

This module contains exceptions that can be raised by the calculation
services and the record store. Data-quality problems in the tracked records
are never raised; they are written back as flags on the affected records.
"""

class CycleTrackerError(Exception):
    """Base exception for cycle calculation errors."""
    pass

class ConfigurationError(CycleTrackerError, EnvironmentError):
    """Raised when required configuration is missing or invalid."""
    pass

class RecordStoreError(CycleTrackerError):
    """Raised when the record store cannot be reached or returns malformed data."""
    pass

class MissingPropertyError(CycleTrackerError, KeyError):
    """Raised when a required record property is absent."""

    def __init__(self, record_id: str, name: str):
        self.record_id = record_id
        self.name = name
        super().__init__(f"Record {record_id} has no property '{name}'")

    def __str__(self) -> str:
        return self.args[0]

class PropertyTypeError(CycleTrackerError, TypeError):
    """Raised when a record property holds a different type than requested."""
    pass
