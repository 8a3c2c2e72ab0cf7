# vardump/dumper/dumper.py
"""
Dumper - the public entry point for dumping values.

    Dumper.dump(value)                       # terminal, text or HTML by context
    Dumper.to_html(value, {"max_depth": 3})  # HTML fragment
    Dumper.to_text(value)                    # plain text
    Dumper.to_terminal(value)                # ANSI colored text

Options are validated when the Dumper is built (see DumpOptions).
"""

from __future__ import annotations

import html
import logging
from collections.abc import Mapping
from typing import Any

from vardump.deferred.assets import DUMPER_CSS, DUMPER_JS, read_assets, wrap_script
from vardump.dumper.context import DumpContext, get_context
from vardump.dumper.describer import Describer, Description
from vardump.dumper.options import DumpOptions
from vardump.dumper.renderer import Renderer, json_encode
from vardump.dumper.snapshot import SnapshotTable
from vardump.helpers import detect_colors
from vardump.models import HIDDEN_VALUE, DumpMode, Location

logger = logging.getLogger(__name__)

Options = DumpOptions | Mapping[str, Any] | None


class Dumper:
    """Describer and Renderer configured from one set of options."""

    # Option names
    DEPTH = "max_depth"
    TRUNCATE = "max_length"
    ITEMS = "max_items"
    COLLAPSE = "collapse_top"
    COLLAPSE_COUNT = "collapse_sub"
    LOCATION = "location"
    OBJECT_EXPOSERS = "object_exposers"
    RESOURCE_EXPOSERS = "resource_exposers"
    LAZY = "lazy"
    LIVE = "live"
    SNAPSHOT = "snapshot"
    DEBUGINFO = "debug_info"
    KEYS_TO_HIDE = "keys_to_hide"
    SCRUBBER = "scrubber"
    THEME = "theme"
    HASH = "hash"

    LOCATION_CLASS = Location.CLASS
    LOCATION_SOURCE = Location.SOURCE

    HIDDEN_VALUE = HIDDEN_VALUE

    def __init__(self, options: Options = None, context: DumpContext | None = None):
        self.options = DumpOptions.parse(options)
        self.context = context if context is not None else get_context()
        opts = self.options

        if opts.live:
            snapshot: SnapshotTable | None = self.context.live_snapshot
        else:
            snapshot = opts.snapshot

        self.describer = Describer(
            max_depth=opts.max_depth,
            max_length=opts.max_length,
            max_items=opts.max_items,
            debug_info=opts.debug_info,
            keys_to_hide=opts.keys_to_hide,
            scrubber=opts.scrubber,
            object_exposers=self.context.object_exposers.merged(opts.object_exposer_entries()),
            resource_exposers=self.context.resource_exposers.merged(opts.resource_exposer_entries()),
            location=opts.source_location or opts.class_location,
            snapshot=snapshot,
        )
        self.renderer = Renderer(
            collapse_top=opts.collapse_top,
            collapse_sub=opts.collapse_sub,
            lazy=opts.render_lazy,
            collecting_mode=opts.collecting,
            source_location=opts.source_location,
            class_location=opts.class_location,
            theme=opts.theme,
            hash=opts.hash,
        )

    # ------------------------------------------------------------------
    # Instance API
    # ------------------------------------------------------------------

    def describe(self, value: Any, key: str | int | None = None) -> Description:
        return self.describer.describe(value, key=key)

    def as_html(self, value: Any, key: str | int | None = None) -> str:
        return self.renderer.render_as_html(self.describe(value, key=key))

    def as_terminal(self, value: Any, colors: Mapping[str, str] | None = None) -> str:
        return self.renderer.render_as_text(self.describe(value), colors)

    # ------------------------------------------------------------------
    # Façade
    # ------------------------------------------------------------------

    @classmethod
    def dump(cls, value: Any, options: Options = None, context: DumpContext | None = None) -> Any:
        """
        Write a dump of ``value`` to the context's stream and return ``value``.

        CLI contexts get terminal output (colored when the stream is a
        terminal), non-HTML responses get plain text, anything else gets
        HTML with source location on by default, preceded once per context
        by the dumper's assets.
        """
        context = context if context is not None else get_context()
        opts = DumpOptions.parse(options)
        mode = context.mode()

        if mode == DumpMode.TERMINAL:
            colors = context.terminal_colors if detect_colors(context.output) else {}
            context.write(cls(opts, context).as_terminal(value, colors))
        elif mode == DumpMode.TEXT:
            context.write(cls(opts, context).as_terminal(value))
        else:
            if cls.LOCATION not in opts.model_fields_set:
                opts = DumpOptions.parse(opts, location=True)
            context.write(cls.render_assets(context))
            context.write(cls(opts, context).as_html(value))
        return value

    @classmethod
    def to_html(
        cls,
        value: Any,
        options: Options = None,
        key: str | int | None = None,
        context: DumpContext | None = None,
    ) -> str:
        """HTML dump. With ``key`` the value is hidden when that key is sensitive."""
        return cls(options, context).as_html(value, key=key)

    @classmethod
    def to_text(cls, value: Any, options: Options = None, context: DumpContext | None = None) -> str:
        return cls(options, context).as_terminal(value)

    @classmethod
    def to_terminal(cls, value: Any, options: Options = None, context: DumpContext | None = None) -> str:
        dumper = cls(options, context)
        return dumper.as_terminal(value, dumper.context.terminal_colors)

    @classmethod
    def render_assets(cls, context: DumpContext | None = None) -> str:
        """
        Style (and, without the debug bar, script) tags for HTML dumps.

        Returned once per context; empty in production mode.
        """
        context = context if context is not None else get_context()
        if context.assets_sent or context.production_mode:
            return ""
        context.assets_sent = True

        nonce = f' nonce="{html.escape(context.nonce)}"' if context.nonce else ""
        css = read_assets(DUMPER_CSS).replace("</", "<\\/")
        out = f"<style{nonce}>{css}</style>\n"

        if not context.debugger_enabled:
            script = "".join(wrap_script(read_assets([name])) for name in DUMPER_JS)
            script = script.replace("<!--", "<\\!--").replace("</s", "<\\/s")
            out += f"<script{nonce}>{script}</script>\n"

        logger.debug("Rendered dumper assets (script=%s)", not context.debugger_enabled)
        return out

    @staticmethod
    def format_snapshot_attribute(snapshot: SnapshotTable) -> str:
        """Single-quoted attribute value holding ``snapshot``; the table is emptied."""
        return "'" + json_encode(snapshot.flush()) + "'"
