# vardump/__init__.py
"""
vardump - readable dumps of arbitrary Python values.

- Describer: bounded, cycle-safe value tree with sensitive keys hidden
- Renderer: HTML (optionally lazy), plain text and ANSI terminal output
- Dumper: options, output mode selection and asset bootstrap
- DeferredContent: per-request content parked in the session and served
  once to a follow-up request

Quick start::

    from vardump import dump

    dump({"user": "alice", "password": "secret"}, {"keys_to_hide": ["password"]})
"""

from typing import Any

from .deferred import (
    AssetOutcome,
    DeferredContent,
    InMemorySessionBackend,
    MappingSessionBackend,
    ServeResult,
    SessionBackend,
)
from .dumper import (
    Describer,
    Description,
    DumpContext,
    DumpOptions,
    Dumper,
    ExposerRegistry,
    Renderer,
    SnapshotTable,
    get_context,
)
from .exceptions import InvalidOptionError, VarDumpError
from .models import HIDDEN_VALUE, Location, Value, ValueType, Visibility

__version__ = "0.1.0"


def dump(value: Any, options: Any = None) -> Any:
    """Dump ``value`` in the current context and return it."""
    return Dumper.dump(value, options)


__all__ = [
    # Entry points
    "dump",
    "Dumper",
    "DumpOptions",
    "DumpContext",
    "get_context",
    # Describing and rendering
    "Describer",
    "Description",
    "ExposerRegistry",
    "Renderer",
    "SnapshotTable",
    # Value model
    "HIDDEN_VALUE",
    "Location",
    "Value",
    "ValueType",
    "Visibility",
    # Deferred content
    "AssetOutcome",
    "DeferredContent",
    "InMemorySessionBackend",
    "MappingSessionBackend",
    "ServeResult",
    "SessionBackend",
    # Errors
    "InvalidOptionError",
    "VarDumpError",
]
