# vardump/dumper/exposer.py
"""
Exposers: per-type functions that decide what a value shows when dumped.

An object exposer takes the object and returns its members as
``(name, value, visibility)`` triples (plain ``(name, value)`` pairs are
public). A resource exposer takes an opaque handle (stream, socket,
thread, ...) and returns a mapping of metadata.

Exposers live in an ordered ExposerRegistry; the first entry whose match
accepts the value wins. A match is a type, a tuple of types, or a
predicate. The structural exposer is the fallback for any object no entry
claims.

Usage::

    registry = ExposerRegistry.default_objects()
    registry.register(Money, lambda m: [("amount", m.amount), ("currency", m.currency)], first=True)
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import functools
import inspect
import io
import pathlib
import re
import socket
import sqlite3
import subprocess
import threading
import traceback
import types
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, NamedTuple, Union
from xml.dom import minidom
from xml.etree import ElementTree

from pydantic import BaseModel

from vardump.helpers import get_class_location
from vardump.models import Visibility

# =============================================================================
# Types
# =============================================================================

Match = Union[type, tuple[type, ...], Callable[[Any], bool]]
"""A type, a tuple of types, or a predicate over the value."""

ObjectExposer = Callable[[Any], Iterable[tuple]]
ResourceExposer = Callable[[Any], Mapping[str, Any]]


class Member(NamedTuple):
    """One member of an exposed object."""

    name: str | int
    value: Any
    visibility: Visibility = Visibility.PUBLIC


class ExposerEntry(NamedTuple):
    match: Match
    expose: Callable[[Any], Any]
    tag: str | None = None  # resource tag, None for object exposers


def matches(match: Match, value: Any) -> bool:
    if isinstance(match, (type, tuple)):
        return isinstance(value, match)
    return bool(match(value))


# =============================================================================
# Registry
# =============================================================================


class ExposerRegistry:
    """
    Ordered registry of (match, exposer) entries.

    The first matching entry wins, so custom entries are placed before the
    defaults.
    """

    def __init__(self, entries: Iterable[ExposerEntry] | None = None) -> None:
        self._entries: list[ExposerEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ExposerEntry]:
        return iter(self._entries)

    def register(
        self,
        match: Match,
        expose: Callable[[Any], Any],
        tag: str | None = None,
        *,
        first: bool = False,
    ) -> None:
        """Register an exposer, at the end or (``first=True``) at the front."""
        entry = ExposerEntry(match, expose, tag)
        if first:
            self._entries.insert(0, entry)
        else:
            self._entries.append(entry)

    def find(self, value: Any) -> ExposerEntry | None:
        """First entry whose match accepts ``value``."""
        for entry in self._entries:
            if matches(entry.match, value):
                return entry
        return None

    def merged(self, custom: Iterable[ExposerEntry]) -> ExposerRegistry:
        """
        New registry with ``custom`` entries in front of this one.

        A custom resource entry replaces a default entry with the same tag.
        """
        custom = [ExposerEntry(*entry) for entry in custom]
        tags = {entry.tag for entry in custom if entry.tag is not None}
        rest = [entry for entry in self._entries if entry.tag is None or entry.tag not in tags]
        return ExposerRegistry(custom + rest)

    @classmethod
    def default_objects(cls) -> ExposerRegistry:
        """Registry with the built-in object exposers."""
        return cls(
            [
                ExposerEntry(
                    (types.FunctionType, types.BuiltinFunctionType, types.MethodType, functools.partial),
                    expose_function,
                ),
                ExposerEntry(enum.Enum, expose_enum),
                ExposerEntry(is_namedtuple, expose_namedtuple),
                ExposerEntry(is_dataclass_instance, expose_dataclass),
                ExposerEntry(BaseModel, expose_pydantic_model),
                ExposerEntry(BaseException, expose_exception),
                ExposerEntry(type, expose_class),
                ExposerEntry(types.ModuleType, expose_module),
                ExposerEntry(re.Pattern, expose_pattern),
                ExposerEntry((datetime.date, datetime.time, datetime.timedelta), expose_datetime),
                ExposerEntry(pathlib.PurePath, expose_path),
                ExposerEntry(ElementTree.Element, expose_element),
                ExposerEntry(minidom.Node, expose_dom_node),
            ]
        )

    @classmethod
    def default_resources(cls) -> ExposerRegistry:
        """Registry with the built-in resource exposers."""
        return cls(
            [
                ExposerEntry(io.IOBase, expose_stream, "stream"),
                ExposerEntry(socket.socket, expose_socket, "socket"),
                ExposerEntry(threading.Thread, expose_thread, "thread"),
                ExposerEntry(subprocess.Popen, expose_process, "process"),
                ExposerEntry(sqlite3.Connection, expose_sqlite, "sqlite-connection"),
                ExposerEntry((types.GeneratorType, types.CoroutineType), expose_generator, "generator"),
            ]
        )


# =============================================================================
# Visibility
# =============================================================================


def declared_names(cls: type) -> set[str]:
    """Attribute names declared through class annotations along the MRO."""
    names: set[str] = set()
    for klass in getattr(cls, "__mro__", ()):
        try:
            names.update(inspect.get_annotations(klass))
        except Exception:  # noqa: BLE001
            continue
    return names


def visibility_of(name: str, cls: type, declared: set[str] | None = None) -> Visibility:
    """Visibility implied by an attribute name."""
    if name.startswith("__") and name.endswith("__"):
        return Visibility.PUBLIC
    for klass in getattr(cls, "__mro__", ()):
        if name.startswith(f"_{klass.__name__.lstrip('_')}__"):
            return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    if declared and name not in declared:
        return Visibility.DYNAMIC
    return Visibility.PUBLIC


# =============================================================================
# Structural default
# =============================================================================


def expose_structure(obj: Any) -> list[Member]:
    """Instance ``__dict__`` plus ``__slots__`` members."""
    cls = type(obj)
    declared = declared_names(cls)
    members: list[Member] = []
    seen: set[str] = set()

    try:
        attrs = vars(obj)
    except TypeError:
        attrs = {}
    for name, value in attrs.items():
        if isinstance(name, str):
            seen.add(name)
            members.append(Member(name, value, visibility_of(name, cls, declared)))

    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__"):
                continue
            name = slot
            if slot.startswith("__") and not slot.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{slot}"
            if name in seen:
                continue
            try:
                value = getattr(obj, name)
            except AttributeError:
                continue
            seen.add(name)
            members.append(Member(name, value, visibility_of(name, cls, declared)))
    return members


def expose_rich_repr(obj: Any) -> list[Member]:
    """Debug view from the ``__rich_repr__`` protocol."""
    members: list[Member] = []
    for index, entry in enumerate(obj.__rich_repr__()):
        if not isinstance(entry, tuple):
            members.append(Member(index, entry))
        elif len(entry) == 1:
            members.append(Member(index, entry[0]))
        elif entry[0] is None:
            members.append(Member(index, entry[1]))
        else:
            # (name, value) or (name, value, default)
            members.append(Member(str(entry[0]), entry[1]))
    return members


def has_debug_view(obj: Any) -> bool:
    return callable(getattr(type(obj), "__rich_repr__", None))


# =============================================================================
# Object exposers
# =============================================================================


def expose_function(fn: Any) -> list[Member]:
    members: list[Member] = []
    if isinstance(fn, functools.partial):
        members.append(Member("func", fn.func, Visibility.VIRTUAL))
        members.append(Member("args", fn.args, Visibility.VIRTUAL))
        members.append(Member("keywords", fn.keywords, Visibility.VIRTUAL))
        return members

    target = getattr(fn, "__func__", fn)
    code = getattr(target, "__code__", None)
    members.append(Member("name", getattr(fn, "__qualname__", repr(fn)), Visibility.VIRTUAL))
    if code is not None:
        members.append(Member("file", code.co_filename, Visibility.VIRTUAL))
        members.append(Member("line", code.co_firstlineno, Visibility.VIRTUAL))
    try:
        members.append(Member("parameters", str(inspect.signature(fn)), Visibility.VIRTUAL))
    except (TypeError, ValueError):
        pass
    if code is not None and getattr(target, "__closure__", None):
        closure = {}
        for name, cell in zip(code.co_freevars, target.__closure__, strict=False):
            try:
                closure[name] = cell.cell_contents
            except ValueError:  # empty cell
                continue
        members.append(Member("closure", closure, Visibility.VIRTUAL))
    if isinstance(fn, types.MethodType):
        members.append(Member("self", fn.__self__, Visibility.VIRTUAL))
    return members


def expose_enum(member: enum.Enum) -> list[Member]:
    return [Member("name", member.name), Member("value", member.value)]


def is_namedtuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def expose_namedtuple(value: Any) -> list[Member]:
    return [Member(name, item) for name, item in zip(type(value)._fields, value, strict=False)]


def is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def expose_dataclass(value: Any) -> list[Member]:
    cls = type(value)
    members = []
    for field in dataclasses.fields(value):
        try:
            item = getattr(value, field.name)
        except AttributeError:
            continue
        members.append(Member(field.name, item, visibility_of(field.name, cls)))
    return members


def expose_pydantic_model(model: BaseModel) -> list[Member]:
    cls = type(model)
    members = [Member(name, getattr(model, name, None), visibility_of(name, cls)) for name in cls.model_fields]
    for name, item in (model.model_extra or {}).items():
        members.append(Member(name, item, Visibility.DYNAMIC))
    for name, item in (getattr(model, "__pydantic_private__", None) or {}).items():
        members.append(Member(name, item, visibility_of(name, cls)))
    return members


def expose_exception(exc: BaseException) -> list[Member]:
    members = [
        Member("message", str(exc), Visibility.VIRTUAL),
        Member("args", exc.args),
    ]
    members.extend(m for m in expose_structure(exc) if m.name not in ("args", "__traceback__"))
    if exc.__cause__ is not None:
        members.append(Member("cause", exc.__cause__, Visibility.VIRTUAL))
    elif exc.__context__ is not None and not exc.__suppress_context__:
        members.append(Member("context", exc.__context__, Visibility.VIRTUAL))
    if exc.__traceback__ is not None:
        frames = [f"{frame.filename}:{frame.lineno} in {frame.name}" for frame in traceback.extract_tb(exc.__traceback__)]
        members.append(Member("traceback", frames, Visibility.VIRTUAL))
    return members


def expose_class(cls: type) -> list[Member]:
    members = [
        Member("name", cls.__qualname__, Visibility.VIRTUAL),
        Member("module", cls.__module__, Visibility.VIRTUAL),
        Member("bases", tuple(base.__qualname__ for base in cls.__bases__), Visibility.VIRTUAL),
    ]
    location = get_class_location(cls)
    if location:
        members.append(Member("location", location, Visibility.VIRTUAL))
    return members


def expose_module(module: types.ModuleType) -> list[Member]:
    return [
        Member("name", module.__name__, Visibility.VIRTUAL),
        Member("file", getattr(module, "__file__", None), Visibility.VIRTUAL),
    ]


def expose_pattern(pattern: re.Pattern) -> list[Member]:
    return [
        Member("pattern", pattern.pattern, Visibility.VIRTUAL),
        Member("flags", str(re.RegexFlag(pattern.flags)), Visibility.VIRTUAL),
    ]


def expose_datetime(value: datetime.date | datetime.time | datetime.timedelta) -> list[Member]:
    if isinstance(value, datetime.timedelta):
        return [Member("value", str(value), Visibility.VIRTUAL)]
    members = [Member("value", value.isoformat(), Visibility.VIRTUAL)]
    tzinfo = getattr(value, "tzinfo", None)
    if tzinfo is not None:
        members.append(Member("timezone", str(tzinfo), Visibility.VIRTUAL))
    return members


def expose_path(path: Any) -> list[Member]:
    return [Member("path", str(path), Visibility.VIRTUAL)]


def expose_element(element: ElementTree.Element) -> list[Member]:
    return [
        Member("tag", element.tag),
        Member("attrib", element.attrib),
        Member("text", element.text),
        Member("tail", element.tail),
        Member("children", list(element), Visibility.VIRTUAL),
    ]


def expose_dom_node(node: minidom.Node) -> list[Member]:
    members = [
        Member("nodeName", node.nodeName),
        Member("nodeValue", node.nodeValue),
    ]
    attributes = getattr(node, "attributes", None)
    if attributes:
        members.append(Member("attributes", dict(attributes.items())))
    members.append(Member("childNodes", list(node.childNodes)))
    return members


# =============================================================================
# Resource exposers
# =============================================================================


def _attributes(obj: Any, names: Iterable[str]) -> dict[str, Any]:
    found = {}
    for name in names:
        value = getattr(obj, name, None)
        if value is not None:
            found[name] = value
    return found


def expose_stream(stream: io.IOBase) -> dict[str, Any]:
    return _attributes(stream, ("name", "mode", "encoding", "closed"))


def expose_socket(sock: socket.socket) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "fileno": sock.fileno(),
        "family": getattr(sock.family, "name", sock.family),
        "type": getattr(sock.type, "name", sock.type),
    }
    for name, getter in (("laddr", sock.getsockname), ("raddr", sock.getpeername)):
        try:
            meta[name] = getter()
        except OSError:
            continue
    return meta


def expose_thread(thread: threading.Thread) -> dict[str, Any]:
    return {
        "name": thread.name,
        "ident": thread.ident,
        "daemon": thread.daemon,
        "alive": thread.is_alive(),
    }


def expose_process(process: subprocess.Popen) -> dict[str, Any]:
    return {"args": process.args, "pid": process.pid, "returncode": process.returncode}


def expose_sqlite(connection: sqlite3.Connection) -> dict[str, Any]:
    try:
        return {
            "in_transaction": connection.in_transaction,
            "isolation_level": connection.isolation_level,
            "total_changes": connection.total_changes,
        }
    except sqlite3.ProgrammingError:
        return {"closed": True}


def expose_generator(gen: Any) -> dict[str, Any]:
    if inspect.iscoroutine(gen):
        state = inspect.getcoroutinestate(gen)
    else:
        state = inspect.getgeneratorstate(gen)
    return {"name": getattr(gen, "__qualname__", None), "state": state}
