# vardump/models/__init__.py
"""
Value model for vardump.
"""

from .enums import (
    HIDDEN_VALUE,
    VISIBILITY_ORDER,
    DumpMode,
    HideReason,
    Location,
    ScalarKind,
    ValueType,
    Visibility,
)
from .value import Item, SourceLocation, Value

__all__ = [
    # Enums
    "DumpMode",
    "HideReason",
    "Location",
    "ScalarKind",
    "ValueType",
    "Visibility",
    # Constants
    "HIDDEN_VALUE",
    "VISIBILITY_ORDER",
    # Models
    "Item",
    "SourceLocation",
    "Value",
]
