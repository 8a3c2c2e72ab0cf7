# vardump/base_models.py
"""Base model for option records that can also be read like mappings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


class DictCompatModel(BaseModel):
    """Option record with read-only mapping access.

    ``opts["max_depth"]``, ``opts.get("theme")`` and ``"lazy" in opts``
    work as on the plain option dicts callers may still pass around.
    ``keys()`` lists only the options that were given explicitly.
    """

    def __getitem__(self, key: str) -> Any:
        if key not in type(self).model_fields:
            raise KeyError(key)
        return getattr(self, key)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in type(self).model_fields

    def keys(self) -> list[str]:
        return [name for name in type(self).model_fields if name in self.model_fields_set]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return all(key in self and self[key] == value for key, value in other.items()) and set(
                self.keys()
            ) <= set(other)
        return super().__eq__(other)
