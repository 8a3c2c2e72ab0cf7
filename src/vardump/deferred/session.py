# vardump/deferred/session.py
"""
Session storage for deferred content.

DeferredContent keeps its entries in whatever session the host framework
provides. A backend exposes one insertion-ordered dict per category;
entries inside it are keyed by request id.

Backends:
- InMemorySessionBackend: process-local, for tests and development servers
- MappingSessionBackend: wraps any mutable mapping used as a session
  (a Starlette ``request.session``, a Flask ``session``, a plain dict)
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from vardump.config import SESSION_NAMESPACE

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class SessionBackend(Protocol):
    """Storage used by DeferredContent."""

    def is_active(self) -> bool:
        """Whether a session is started and writable for this request."""
        ...

    def namespace(self, category: str) -> dict[str, Any]:
        """Mutable dict of entries for ``category``, created on demand."""
        ...

    def categories(self) -> list[str]:
        """Categories that currently have a namespace."""
        ...


# =============================================================================
# Entries
# =============================================================================


class DeferredEntry(BaseModel):
    """Content stored by one request for one category."""

    time: float = Field(..., description="Unix time when the entry was stored")
    content: str


# =============================================================================
# Backends
# =============================================================================


class InMemorySessionBackend(BaseModel):
    """Process-local backend. Set ``active=False`` to simulate a missing session."""

    data: dict[str, dict[str, Any]] = Field(default_factory=dict)
    active: bool = True

    def is_active(self) -> bool:
        return self.active

    def namespace(self, category: str) -> dict[str, Any]:
        return self.data.setdefault(category, {})

    def categories(self) -> list[str]:
        return list(self.data)

    def clear(self) -> None:
        self.data.clear()


class MappingSessionBackend:
    """
    Backend over a framework session mapping.

    Entries are kept below a single key (``_vardump`` by default). ``None``
    means no session was started; the backend is then inactive.
    """

    def __init__(self, session: MutableMapping[str, Any] | None, key: str = SESSION_NAMESPACE):
        self.session = session
        self.key = key

    def is_active(self) -> bool:
        return self.session is not None

    def _root(self) -> dict[str, Any]:
        if self.session is None:
            return {}
        root = self.session.get(self.key)
        if not isinstance(root, dict):
            root = {}
            self.session[self.key] = root
        return root

    def namespace(self, category: str) -> dict[str, Any]:
        root = self._root()
        items = root.get(category)
        if not isinstance(items, dict):
            items = {}
            root[category] = items
        self._mark_modified()
        return items

    def categories(self) -> list[str]:
        return list(self._root())

    def _mark_modified(self) -> None:
        # Sessions that track changes (Flask) miss in-place edits of nested dicts
        if self.session is not None and hasattr(self.session, "modified"):
            self.session.modified = True
