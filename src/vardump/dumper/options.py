# vardump/dumper/options.py
"""
Dump options.

Options are validated once, when a Dumper is built. Unknown names, negative
limits and ``live`` combined with ``snapshot`` raise InvalidOptionError.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator

from vardump.base_models import DictCompatModel
from vardump.config import (
    DEFAULT_COLLAPSE_SUB,
    DEFAULT_COLLAPSE_TOP,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_ITEMS,
    DEFAULT_MAX_LENGTH,
    DEFAULT_THEME,
)
from vardump.dumper.exposer import ExposerEntry
from vardump.dumper.snapshot import SnapshotTable
from vardump.exceptions import InvalidOptionError
from vardump.models import Location


class DumpOptions(DictCompatModel):
    """
    Options of one dump.

    ``location`` is a bool or a Location bitmask; ``True`` turns every
    location on. ``lazy`` is ``None`` (defer only collapsed parts), ``True``
    (defer everything) or ``False`` (inline everything). ``live`` and
    ``snapshot`` switch to collecting mode: rendering is always lazy there
    and the snapshot is flushed by its owner rather than with each dump.
    """

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)
    max_length: int = Field(default=DEFAULT_MAX_LENGTH, ge=0)
    max_items: int = Field(default=DEFAULT_MAX_ITEMS, ge=0)
    collapse_top: bool | int = DEFAULT_COLLAPSE_TOP
    collapse_sub: int = Field(default=DEFAULT_COLLAPSE_SUB, ge=0)
    location: bool | int = False

    # (match, expose) pairs, tried before the defaults
    object_exposers: list[Any] = Field(default_factory=list)
    # tag -> (match, expose); a tag shared with a default replaces it
    resource_exposers: dict[str, Any] = Field(default_factory=dict)

    lazy: bool | None = None
    live: bool = False
    snapshot: SnapshotTable | None = None
    debug_info: bool = False
    keys_to_hide: list[str] = Field(default_factory=list)
    scrubber: Callable[[str, Any], bool] | None = None
    theme: str | None = DEFAULT_THEME
    hash: bool = True

    @field_validator("collapse_top", "location", mode="before")
    @classmethod
    def validate_non_negative(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, int):
            return v
        if v < 0:
            raise ValueError(f"must be a bool or a non-negative integer, got {v}")
        # Location flags are plain ints here, never bools
        return int(v)

    @field_validator("object_exposers")
    @classmethod
    def validate_object_exposers(cls, v: list[Any]) -> list[Any]:
        for entry in v:
            if not isinstance(entry, tuple) or len(entry) != 2 or not callable(entry[1]):
                raise InvalidOptionError("object_exposers", f"expected (match, expose) pairs, got {entry!r}")
        return v

    @field_validator("resource_exposers")
    @classmethod
    def validate_resource_exposers(cls, v: dict[str, Any]) -> dict[str, Any]:
        for tag, entry in v.items():
            if not isinstance(entry, tuple) or len(entry) != 2 or not callable(entry[1]):
                raise InvalidOptionError("resource_exposers", f"expected (match, expose) for {tag!r}, got {entry!r}")
        return v

    @model_validator(mode="after")
    def validate_combinations(self) -> DumpOptions:
        if self.live and self.snapshot is not None:
            raise InvalidOptionError("live", "cannot be combined with 'snapshot'")
        return self

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, options: DumpOptions | Mapping[str, Any] | None = None, **overrides: Any) -> DumpOptions:
        """
        Validate ``options`` (a DumpOptions, a mapping or None) plus overrides.

        Raises:
            InvalidOptionError: for any rejected option.
        """
        if isinstance(options, DumpOptions):
            if not overrides:
                return options
            data = {name: getattr(options, name) for name in options.model_fields_set}
        else:
            data = dict(options or {})
        data.update(overrides)

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            error = exc.errors()[0]
            original = error.get("ctx", {}).get("error")
            if isinstance(original, InvalidOptionError):
                raise original from exc
            option = ".".join(str(part) for part in error["loc"]) or "options"
            raise InvalidOptionError(option, error["msg"]) from exc

    # ------------------------------------------------------------------
    # Derived settings
    # ------------------------------------------------------------------

    @property
    def collecting(self) -> bool:
        return self.live or self.snapshot is not None

    @property
    def render_lazy(self) -> bool | None:
        """``lazy`` as rendered: collecting mode always defers."""
        return True if self.collecting else self.lazy

    @property
    def location_flags(self) -> Location:
        if self.location is True:
            return Location.SOURCE | Location.CLASS
        if self.location is False:
            return Location.NONE
        return Location(self.location)

    @property
    def source_location(self) -> bool:
        return Location.SOURCE in self.location_flags

    @property
    def class_location(self) -> bool:
        return Location.CLASS in self.location_flags

    def object_exposer_entries(self) -> list[ExposerEntry]:
        return [ExposerEntry(match, expose) for match, expose in self.object_exposers]

    def resource_exposer_entries(self) -> list[ExposerEntry]:
        return [ExposerEntry(match, expose, tag) for tag, (match, expose) in self.resource_exposers.items()]
