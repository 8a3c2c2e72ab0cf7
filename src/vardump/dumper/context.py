# vardump/dumper/context.py
"""
Dump context: per-sequence state of the dumper.

A DumpContext owns what would otherwise be process-wide: the live
snapshot, whether assets were already sent, the terminal palette, the
exposer registries and the output stream. Pass it explicitly or make it
current for a block::

    with DumpContext(cli=False, content_type="text/html") as ctx:
        Dumper.dump(request)
        ...
        attribute = ctx.flush_live()
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar, Token
from typing import Any, TextIO

from pydantic import BaseModel, Field, PrivateAttr

from vardump.dumper.exposer import ExposerRegistry
from vardump.dumper.renderer import json_encode
from vardump.dumper.snapshot import SnapshotTable
from vardump.models import DumpMode

logger = logging.getLogger(__name__)

# ANSI SGR codes per fragment class
TERMINAL_COLORS: dict[str, str] = {
    "none": "1;33",
    "bool": "1;33",
    "number": "1;32",
    "string": "1;36",
    "length": "1;30",
    "sequence": "1;31",
    "key": "1;37",
    "public": "1;37",
    "protected": "1;37",
    "private": "1;37",
    "dynamic": "1;37",
    "virtual": "1;37",
    "object": "1;31",
    "resource": "1;37",
    "hidden": "1;30",
    "recursion": "1;31",
    "more": "1;30",
    "indent": "1;30",
}


class DumpContext(BaseModel):
    """State shared by the dumps of one request, page or CLI run."""

    model_config = {"arbitrary_types_allowed": True}

    cli: bool = True  # web integrations set False
    content_type: str | None = None
    production_mode: bool = False
    debugger_enabled: bool = False
    nonce: str | None = None
    stream: Any = None

    terminal_colors: dict[str, str] = Field(default_factory=lambda: dict(TERMINAL_COLORS))
    object_exposers: ExposerRegistry = Field(default_factory=ExposerRegistry.default_objects)
    resource_exposers: ExposerRegistry = Field(default_factory=ExposerRegistry.default_resources)

    live_snapshot: SnapshotTable = Field(default_factory=SnapshotTable)
    assets_sent: bool = False

    _tokens: list[Token] = PrivateAttr(default_factory=list)

    @property
    def output(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def write(self, text: str) -> None:
        self.output.write(text)

    def mode(self) -> DumpMode:
        """Terminal for CLI runs, text for non-HTML responses, otherwise HTML."""
        if self.cli:
            return DumpMode.TERMINAL
        if self.content_type and not self.content_type.lower().startswith("text/html"):
            return DumpMode.TEXT
        return DumpMode.HTML

    def flush_live(self) -> str:
        """Transport encoding of the live snapshot, single-quoted; the snapshot is emptied."""
        return "'" + json_encode(self.live_snapshot.flush()) + "'"

    def __enter__(self) -> DumpContext:
        self._tokens.append(_current.set(self))
        return self

    def __exit__(self, *exc_info: Any) -> None:
        _current.reset(self._tokens.pop())


_current: ContextVar[DumpContext | None] = ContextVar("vardump_context", default=None)


def get_context() -> DumpContext:
    """The current context, created on first use in this execution context."""
    context = _current.get()
    if context is None:
        context = DumpContext()
        _current.set(context)
        logger.debug("Created dump context (cli=%s)", context.cli)
    return context


def set_context(context: DumpContext | None) -> Token:
    """Make ``context`` current; returns the token for ContextVar.reset()."""
    return _current.set(context)
