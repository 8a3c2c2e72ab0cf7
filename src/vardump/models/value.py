# vardump/models/value.py
"""
Value model: the bounded tree produced by describing a runtime value.

Every node is a ``Value`` tagged by ``type``. Containers (sequences,
objects, resources) carry the snapshot ``id`` they were registered under,
so a later encounter of the same identity can be emitted as a ``ref`` node
instead of being described again.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from vardump.models.enums import HideReason, ScalarKind, ValueType, Visibility


class Item(BaseModel):
    """A child of a container: key, described value and member visibility."""

    key: str | int | None = None
    value: Value
    visibility: Visibility | None = None

    # Key text is already a display form (repr of a non str/int dict key)
    raw_key: bool = False


class Value(BaseModel):
    """A node of the value model."""

    type: ValueType

    # Scalar text, truncated prefix, type name, resource tag or hidden marker
    value: str | None = None
    kind: ScalarKind | None = None

    # Original string length, or total number of children of a container
    length: int | None = None

    # Snapshot identity (containers) and reference target (ref nodes)
    id: int | None = None
    ref: int | None = None

    # Children; None when the container sits at the depth limit
    items: list[Item] | None = None
    truncated: int = Field(default=0, description="Children dropped by max_items")
    depth_limited: bool = False

    # Where the object's class is declared ("file:line")
    location: str | None = None

    hidden: HideReason | None = None

    @property
    def is_container(self) -> bool:
        return self.type in (ValueType.SEQUENCE, ValueType.OBJECT, ValueType.RESOURCE)

    def reference(self) -> Value:
        """A ``ref`` node pointing at this container."""
        return Value(type=ValueType.REFERENCE, ref=self.id, value=self.value)

    def to_transport(self) -> dict[str, Any]:
        """
        Shallow JSON-ready form used by the snapshot transport encoding.

        Child containers are replaced by references to their own entries,
        so each node is transported once.
        """
        data = self.model_dump(mode="json", exclude_none=True, exclude_defaults=True, exclude={"items"})
        if self.items is not None:
            data["items"] = [
                {
                    **item.model_dump(mode="json", exclude_none=True, exclude_defaults=True, exclude={"value"}),
                    "value": (
                        item.value.reference().to_transport()
                        if item.value.is_container and item.value.id is not None
                        else item.value.to_transport()
                    ),
                }
                for item in self.items
            ]
        return data


Item.model_rebuild()


class SourceLocation(BaseModel):
    """Where ``dump()`` was called from."""

    file: str
    line: int
    code: str | None = None

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"
