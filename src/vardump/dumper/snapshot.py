# vardump/dumper/snapshot.py
"""
Snapshot table: flat, append-only, id-indexed list of described containers.

One table may be shared by several describe() calls (the live snapshot of a
page, or a caller-supplied snapshot). The renderer refers to entries by id
when it defers a subtree, and a client expands them from the transport
encoding produced by flush().

Ids are allocated monotonically and are never reused by the same table,
not even after a flush, so a flushed id can never be confused with a new
entry.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from vardump.models import Value

logger = logging.getLogger(__name__)


class SnapshotTable(BaseModel):
    """
    Append-only table of container nodes.

    Entries are registered before their children are described, so a
    cyclic structure can point back at an entry that is still being filled.
    """

    next_id: int = Field(default=1, description="Id handed out by the next allocate()")

    _entries: dict[int, Value] = PrivateAttr(default_factory=dict)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, snapshot_id: object) -> bool:
        return snapshot_id in self._entries

    def allocate(self, node: Value) -> int:
        """Assign the next id to ``node`` and append it."""
        snapshot_id = self.next_id
        self.next_id += 1
        node.id = snapshot_id
        self._entries[snapshot_id] = node
        return snapshot_id

    def get(self, snapshot_id: int) -> Value | None:
        return self._entries.get(snapshot_id)

    def entries(self) -> list[Value]:
        return list(self._entries.values())

    def flush(self) -> list[dict[str, Any]]:
        """
        Return the transport form of every entry and empty the table.

        Entries returned here are never returned again.
        """
        payload = [node.to_transport() for node in self.entries()]
        self._entries.clear()
        logger.debug("Flushed %d snapshot entries", len(payload))
        return payload
