# vardump/dumper/describer.py
"""
Describer - turns an arbitrary runtime value into a bounded Value tree.

Traversal is depth-first. Every container (sequence, object, resource) is
registered in the snapshot table the first time its identity is seen, and
any later encounter of that identity during the same describe() call is
emitted as a ``ref`` node. Two distinct containers that merely compare
equal are described separately.

Limits are applied before recursing:
- ``max_depth``: a container at this depth keeps its header but no children
- ``max_length``: strings and bytes keep this many characters
- ``max_items``: children per container; the rest is only counted

Keys listed in ``keys_to_hide`` (case-insensitive, either ``name`` or
``Class.name``) and keys the scrubber flags become ``hidden`` nodes before
the value behind them is looked at.

describe() never raises: whatever cannot be inspected is replaced by an
opaque resource node carrying the error text.
"""

from __future__ import annotations

import enum
import logging
import numbers
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from itertools import islice
from typing import Any

from pydantic import BaseModel

from vardump.config import DEFAULT_MAX_DEPTH, DEFAULT_MAX_ITEMS, DEFAULT_MAX_LENGTH
from vardump.dumper.exposer import (
    ExposerEntry,
    ExposerRegistry,
    Member,
    expose_rich_repr,
    expose_structure,
    has_debug_view,
)
from vardump.dumper.snapshot import SnapshotTable
from vardump.helpers import find_location, get_class_location, get_class_name
from vardump.models import (
    HIDDEN_VALUE,
    VISIBILITY_ORDER,
    HideReason,
    Item,
    ScalarKind,
    SourceLocation,
    Value,
    ValueType,
    Visibility,
)

logger = logging.getLogger(__name__)

Scrubber = Callable[[str, Any], bool]
"""(key, value) -> True when the value must be hidden."""

SEQUENCE_TYPES = (dict, list, tuple, set, frozenset, deque)


class Description(BaseModel):
    """Result of describe(): the root node and the table it was recorded in."""

    model_config = {"arbitrary_types_allowed": True}

    root: Value
    snapshot: SnapshotTable
    location: SourceLocation | None = None


def safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:  # noqa: BLE001
        return object.__repr__(value)


class Describer:
    """
    Walks values into Value trees.

    A describer holds configuration only; per-call state (identity map,
    pinned objects) lives for a single describe() call. Set ``snapshot`` to
    share one table across several calls.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_items: int = DEFAULT_MAX_ITEMS,
        debug_info: bool = False,
        keys_to_hide: Iterable[str] = (),
        scrubber: Scrubber | None = None,
        object_exposers: ExposerRegistry | None = None,
        resource_exposers: ExposerRegistry | None = None,
        location: bool = False,
        snapshot: SnapshotTable | None = None,
    ):
        self.max_depth = max_depth
        self.max_length = max_length
        self.max_items = max_items
        self.debug_info = debug_info
        self.keys_to_hide = {key.lower() for key in keys_to_hide}
        self.scrubber = scrubber
        self.object_exposers = object_exposers if object_exposers is not None else ExposerRegistry.default_objects()
        self.resource_exposers = (
            resource_exposers if resource_exposers is not None else ExposerRegistry.default_resources()
        )
        self.location = location
        self.snapshot = snapshot

        self._table = SnapshotTable()
        self._visited: dict[int, int] = {}
        self._pinned: list[Any] = []

    def describe(self, value: Any, key: str | int | None = None) -> Description:
        """
        Describe ``value``.

        When ``key`` is given the value is treated as if found under that
        key, so hiding rules apply to the top-level value too.
        """
        self._table = self.snapshot if self.snapshot is not None else SnapshotTable()
        self._visited = {}
        # Keep every registered object alive so its id() is not recycled
        self._pinned = []
        try:
            reason = self._hide_reason(key, value) if key is not None else None
            if reason is not None:
                root = self._hidden(reason)
            else:
                root = self._describe_var(value, 0)
        finally:
            self._visited = {}
            self._pinned = []

        location = find_location() if self.location else None
        return Description(root=root, snapshot=self._table, location=location)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _describe_var(self, value: Any, depth: int) -> Value:
        try:
            return self._dispatch(value, depth)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Describing %s failed, using opaque node: %r", get_class_name(value), exc)
            return self._describe_opaque(value, exc)

    def _dispatch(self, value: Any, depth: int) -> Value:
        if value is None:
            return Value(type=ValueType.SCALAR, kind=ScalarKind.NONE, value="None")
        if isinstance(value, bool):
            return Value(type=ValueType.SCALAR, kind=ScalarKind.BOOL, value=repr(value))
        if isinstance(value, enum.Enum):
            return self._describe_object(value, depth, self.object_exposers.find(value))
        if isinstance(value, numbers.Number):
            text = repr(value) if type(value) in (int, float, complex) else str(value)
            return Value(type=ValueType.SCALAR, kind=ScalarKind.NUMBER, value=text)
        if isinstance(value, str):
            return self._describe_string(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self._describe_bytes(value)

        entry = self.resource_exposers.find(value)
        if entry is not None:
            return self._describe_resource(value, entry, depth)

        entry = self.object_exposers.find(value)
        if entry is not None:
            return self._describe_object(value, depth, entry)

        if isinstance(value, SEQUENCE_TYPES) or isinstance(value, Mapping):
            return self._describe_sequence(value, depth)

        return self._describe_object(value, depth)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def _describe_string(self, text: str) -> Value:
        if len(text) > self.max_length:
            return Value(
                type=ValueType.TRUNCATED,
                kind=ScalarKind.STRING,
                value=text[: self.max_length],
                length=len(text),
            )
        return Value(type=ValueType.SCALAR, kind=ScalarKind.STRING, value=text)

    def _describe_bytes(self, data: bytes | bytearray | memoryview) -> Value:
        length = len(data)
        visible = repr(bytes(data[: self.max_length]))[2:-1]
        if length > self.max_length:
            return Value(type=ValueType.TRUNCATED, kind=ScalarKind.BYTES, value=visible, length=length)
        return Value(type=ValueType.SCALAR, kind=ScalarKind.BYTES, value=visible)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _reference_to(self, value: Any) -> Value | None:
        snapshot_id = self._visited.get(id(value))
        if snapshot_id is None:
            return None
        target = self._table.get(snapshot_id)
        return Value(
            type=ValueType.REFERENCE,
            ref=snapshot_id,
            value=target.value if target is not None else get_class_name(value),
        )

    def _register(self, value: Any, node: Value) -> None:
        self._visited[id(value)] = self._table.allocate(node)
        self._pinned.append(value)

    def _describe_sequence(self, value: Any, depth: int) -> Value:
        ref = self._reference_to(value)
        if ref is not None:
            return ref

        node = Value(type=ValueType.SEQUENCE, value=get_class_name(value), length=len(value))
        self._register(value, node)
        if depth >= self.max_depth:
            node.depth_limited = True
            return node

        if isinstance(value, Mapping):
            pairs: Iterable[tuple[Any, Any]] = islice(value.items(), self.max_items)
        elif isinstance(value, (set, frozenset)):
            pairs = ((None, item) for item in islice(value, self.max_items))
        else:
            pairs = enumerate(islice(value, self.max_items))

        node.items = []
        for key, item in pairs:
            node.items.append(self._describe_item(key, item, depth + 1))
        node.truncated = max(0, node.length - len(node.items))
        return node

    def _describe_object(self, value: Any, depth: int, entry: ExposerEntry | None = None) -> Value:
        ref = self._reference_to(value)
        if ref is not None:
            return ref

        node = Value(type=ValueType.OBJECT, value=get_class_name(value))
        self._register(value, node)
        if self.location:
            try:
                node.location = get_class_location(type(value))
            except TypeError:  # unhashable class
                node.location = None
        if depth >= self.max_depth:
            node.depth_limited = True
            return node

        members = self._expose(value, entry)
        members.sort(key=lambda member: VISIBILITY_ORDER[member.visibility])
        node.length = len(members)
        node.items = [
            self._describe_item(member.name, member.value, depth + 1, member.visibility, owner=value)
            for member in members[: self.max_items]
        ]
        node.truncated = node.length - len(node.items)
        return node

    def _describe_resource(self, value: Any, entry: ExposerEntry, depth: int) -> Value:
        ref = self._reference_to(value)
        if ref is not None:
            return ref

        node = Value(type=ValueType.RESOURCE, value=entry.tag or get_class_name(value))
        self._register(value, node)
        if depth >= self.max_depth:
            node.depth_limited = True
            return node

        try:
            meta = dict(entry.expose(value))
        except Exception as exc:  # noqa: BLE001
            logger.debug("Resource exposer for %s failed: %r", node.value, exc)
            meta = {"error": f"{type(exc).__name__}: {exc}"}
        node.length = len(meta)
        node.items = [
            self._describe_item(key, item, depth + 1) for key, item in islice(meta.items(), self.max_items)
        ]
        node.truncated = node.length - len(node.items)
        return node

    def _describe_opaque(self, value: Any, exc: Exception) -> Value:
        try:
            message = f"{type(exc).__name__}: {exc}"
        except Exception:  # noqa: BLE001
            message = type(exc).__name__
        return Value(
            type=ValueType.RESOURCE,
            value=get_class_name(value),
            length=1,
            items=[Item(key="error", value=self._describe_string(message))],
        )

    # ------------------------------------------------------------------
    # Members and hiding
    # ------------------------------------------------------------------

    def _expose(self, value: Any, entry: ExposerEntry | None) -> list[Member]:
        if self.debug_info and has_debug_view(value):
            try:
                return _members(expose_rich_repr(value))
            except Exception as exc:  # noqa: BLE001
                logger.debug("Debug view of %s failed: %r", get_class_name(value), exc)
        if entry is not None:
            try:
                return _members(entry.expose(value))
            except Exception as exc:  # noqa: BLE001
                logger.debug("Exposer for %s failed, using structural view: %r", get_class_name(value), exc)
        return _members(expose_structure(value))

    def _describe_item(
        self,
        key: Any,
        value: Any,
        depth: int,
        visibility: Visibility | None = None,
        owner: Any = None,
    ) -> Item:
        raw_key = key is not None and (isinstance(key, bool) or not isinstance(key, (str, int)))
        shown_key = safe_repr(key)[: self.max_length] if raw_key else key

        reason = self._hide_reason(key, value, owner)
        child = self._hidden(reason) if reason is not None else self._describe_var(value, depth)
        return Item(key=shown_key, value=child, visibility=visibility, raw_key=raw_key)

    def _hide_reason(self, key: Any, value: Any, owner: Any = None) -> HideReason | None:
        if not isinstance(key, str):
            return None
        lowered = key.lower()
        if lowered in self.keys_to_hide:
            return HideReason.KEY
        if owner is not None and self.keys_to_hide:
            qualified = f"{getattr(type(owner), '__qualname__', '')}.{key}".lower()
            if qualified in self.keys_to_hide:
                return HideReason.KEY
        if self.scrubber is not None:
            try:
                if self.scrubber(key, value):
                    return HideReason.SCRUBBER
            except Exception:  # noqa: BLE001
                logger.warning("Scrubber failed on key %r, hiding its value", key)
                return HideReason.SCRUBBER
        return None

    @staticmethod
    def _hidden(reason: HideReason) -> Value:
        return Value(type=ValueType.HIDDEN, value=HIDDEN_VALUE, hidden=reason)


def _members(raw: Any) -> list[Member]:
    """Normalise exposer output: Members, (name, value[, visibility]) tuples or a mapping."""
    if isinstance(raw, Mapping):
        return [Member(name, value) for name, value in raw.items()]
    members = []
    for entry in raw:
        if isinstance(entry, Member):
            members.append(entry)
        elif len(entry) == 3:
            members.append(Member(entry[0], entry[1], Visibility(entry[2])))
        else:
            members.append(Member(entry[0], entry[1]))
    return members
