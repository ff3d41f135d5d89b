"""Exceptions raised by the XGBoost bridge.

Contract violations (empty tables, missing label, no features) are raised as
plain ``ValueError``. Errors reported by the native library surface as
``xgboost.core.XGBoostError`` and are never wrapped.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Raised when a table cannot be converted into XGBoost's matrix format."""


class UsageBlockedError(RuntimeError):
    """Raised when a guard blocks access to a native matrix handle."""

    def __init__(self) -> None:
        super().__init__("XGBoost was blocked from acquiring DMatrix handle")


class IncompatibleTableError(ValueError):
    """Raised when a table does not match the columns a model was trained on."""


class MissingValidationSetError(ValueError):
    """Raised when custom early stopping is requested without a validation table."""


__all__ = [
    "ConversionError",
    "IncompatibleTableError",
    "MissingValidationSetError",
    "UsageBlockedError",
]
