# vardump/deferred/__init__.py
"""
Deferred content: per-request payloads parked in the session and served
once to a follow-up request.
"""

from .assets import AssetBundle
from .content import AssetOutcome, DeferredContent, ServeResult
from .session import (
    DeferredEntry,
    InMemorySessionBackend,
    MappingSessionBackend,
    SessionBackend,
)

__all__ = [
    "AssetBundle",
    "AssetOutcome",
    "DeferredContent",
    "DeferredEntry",
    "InMemorySessionBackend",
    "MappingSessionBackend",
    "ServeResult",
    "SessionBackend",
]
