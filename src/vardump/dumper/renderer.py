# vardump/dumper/renderer.py
"""
Renderer - turns a Description into HTML, plain text or ANSI terminal output.

HTML and text share one node-kind dispatch. In HTML every fragment is an
escaped ``<span class="vardump-dump-*">``; in text the same fragment is the
raw text, colored when the palette has an entry for its class.

Lazy modes (HTML only):
- ``lazy=False``: everything inline, collapsed containers keep their markup
- ``lazy=None``: collapsed containers and shared references become toggles
  carrying ``data-vardump-ref``; the client expands them from the snapshot
  encoding in ``data-vardump-snapshot``
- ``lazy=True``: the whole dump is deferred to ``data-vardump-dump``

In collecting mode the snapshot is not emitted with the dump; whoever owns
the shared table flushes it later.
"""

from __future__ import annotations

import html
import json
from collections.abc import Mapping
from typing import Any

from vardump.config import DEFAULT_COLLAPSE_SUB, DEFAULT_COLLAPSE_TOP, DEFAULT_THEME
from vardump.dumper.describer import Description
from vardump.dumper.snapshot import SnapshotTable
from vardump.helpers import SURROGATES
from vardump.models import HIDDEN_VALUE, Item, ScalarKind, SourceLocation, Value, ValueType

# Control characters shown as escapes; newlines would break indentation
_ESCAPES = {i: f"\\x{i:02x}" for i in [*range(0x20), 0x7F]}
_ESCAPES.update({ord("\n"): "\\n", ord("\r"): "\\r", ord("\t"): "\\t"})


def json_encode(data: Any) -> str:
    """
    JSON safe for a single-quoted HTML attribute.

    Slashes and Unicode are kept literally, ``'`` and ``&`` are escaped and
    lone surrogates are replaced with U+FFFD.
    """
    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
    text = text.replace("&", "\\u0026").replace("'", "\\u0027")
    return SURROGATES.sub("\ufffd", text)


def quote(text: str) -> str:
    return "'" + text.translate(_ESCAPES) + "'"


class _RenderPass:
    """State of one render call."""

    def __init__(self, as_html: bool, lazy: bool | None, description: Description, colors: Mapping[str, str]):
        self.html = as_html
        self.lazy = lazy
        self.table = description.snapshot
        # Sequences that are referenced again show their id
        self.shared = _referenced_ids(description.root)
        self.colors = colors
        self.parents: list[int] = []
        # Containers whose children were already written in this pass
        self.rendered: set[int] = set()
        self.deferred = False


class Renderer:
    """Renders value models. Holds presentation settings only."""

    def __init__(
        self,
        collapse_top: int | bool = DEFAULT_COLLAPSE_TOP,
        collapse_sub: int = DEFAULT_COLLAPSE_SUB,
        lazy: bool | None = None,
        collecting_mode: bool = False,
        source_location: bool = False,
        class_location: bool = False,
        theme: str | None = DEFAULT_THEME,
        hash: bool = True,
    ):
        self.collapse_top = collapse_top
        self.collapse_sub = collapse_sub
        self.lazy = lazy
        self.collecting_mode = collecting_mode
        self.source_location = source_location
        self.class_location = class_location
        self.theme = theme
        self.hash = hash

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def render_as_html(self, description: Description) -> str:
        state = _RenderPass(True, self.lazy, description, {})
        root = description.root

        dump_attr = None
        if self.lazy is True:
            body = ""
            dump_attr = json_encode(_transport(root))
            state.deferred = True
        else:
            body = self._render_var(root, 0, state)

        snapshot_attr = None
        if state.deferred and not self.collecting_mode:
            snapshot_attr = self.flush_snapshot(description.snapshot)

        classes = "vardump-dump"
        if self.theme:
            classes += f" vardump-{html.escape(self.theme)}"
        if self.lazy is True:
            classes += " vardump-dump-lazy"

        attrs = f' class="{classes}"'
        if snapshot_attr is not None:
            attrs += f" data-vardump-snapshot='{snapshot_attr}'"
        if dump_attr is not None:
            attrs += f" data-vardump-dump='{dump_attr}'"

        location = ""
        if self.source_location and description.location is not None:
            location = self._render_location(description.location, state)
        return f"<pre{attrs}>{location}{body}</pre>\n"

    def render_as_text(self, description: Description, colors: Mapping[str, str] | None = None) -> str:
        state = _RenderPass(False, False, description, colors or {})
        text = self._render_var(description.root, 0, state)
        if self.source_location and description.location is not None:
            text += self._render_location(description.location, state)
        return text

    def flush_snapshot(self, table: SnapshotTable) -> str:
        """Transport encoding of ``table``; the table is emptied."""
        return json_encode(table.flush())

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _render_var(self, node: Value, depth: int, state: _RenderPass) -> str:
        if node.type == ValueType.SCALAR:
            return self._render_scalar(node, state) + "\n"
        if node.type == ValueType.TRUNCATED:
            text = quote(node.value or "") if node.kind == ScalarKind.STRING else f"b'{node.value}'"
            return self._span(state, "string", text + "…") + " " + self._span(state, "length", f"({node.length})") + "\n"
        if node.type == ValueType.HIDDEN:
            return self._span(state, "hidden", HIDDEN_VALUE) + "\n"
        if node.type == ValueType.REFERENCE:
            return self._render_reference(node, depth, state)
        return self._render_container(node, depth, state)

    def _render_scalar(self, node: Value, state: _RenderPass) -> str:
        if node.kind == ScalarKind.STRING:
            return self._span(state, "string", quote(node.value or ""))
        if node.kind == ScalarKind.BYTES:
            return self._span(state, "string", f"b'{node.value}'")
        return self._span(state, node.kind.value if node.kind else "none", node.value or "")

    def _render_reference(self, node: Value, depth: int, state: _RenderPass) -> str:
        target = state.table.get(node.ref) if node.ref is not None else None
        header = self._header(target, state) if target is not None else self._ref_header(node, state)

        if node.ref in state.parents:
            return header + " " + self._span(state, "recursion", "RECURSION") + "\n"
        if state.html and state.lazy is not False:
            state.deferred = True
            return self._toggle(header, target or node, node.ref, deferred=True) + "\n"
        if target is not None and target.id not in state.rendered:
            return self._render_container(target, depth, state, force_collapse=True)
        # Already written once: header only, like a repeated object
        return header + " …\n"

    def _render_container(self, node: Value, depth: int, state: _RenderPass, force_collapse: bool = False) -> str:
        header = self._header(node, state)
        if node.depth_limited:
            return header + " …\n"
        if not node.items and not node.truncated:
            return header + "\n"

        count = node.length if node.length is not None else len(node.items or ())
        collapsed = force_collapse or self._is_collapsed(count, depth)
        if state.html and collapsed and state.lazy is not False and node.id is not None:
            state.deferred = True
            return self._toggle(header, node, node.id, deferred=True) + "\n"

        if node.id is not None:
            state.rendered.add(node.id)
            state.parents.append(node.id)
        try:
            children = "".join(self._render_item(item, depth, state) for item in node.items or ())
        finally:
            if node.id is not None:
                state.parents.pop()
        if node.truncated:
            children += self._indent(depth, state) + self._span(state, "more", f"… {node.truncated} more") + "\n"

        if not state.html:
            return header + "\n" + children
        block = "vardump-collapsed" if collapsed else "vardump-dump-children"
        return self._toggle(header, node, None, collapsed=collapsed) + f'\n<div class="{block}">{children}</div>'

    def _render_item(self, item: Item, depth: int, state: _RenderPass) -> str:
        return self._indent(depth, state) + self._key(item, state) + self._render_var(item.value, depth + 1, state)

    # ------------------------------------------------------------------
    # Fragments
    # ------------------------------------------------------------------

    def _header(self, node: Value, state: _RenderPass) -> str:
        if node.type == ValueType.SEQUENCE:
            text = self._span(state, "sequence", node.value or "") + f" ({node.length})"
            if self.hash and node.id in state.shared:
                text += " " + self._span(state, "hash", f"#{node.id}")
            return text
        if node.type == ValueType.RESOURCE:
            text = self._span(state, "resource", f"{node.value} resource")
            return text + (" " + self._span(state, "hash", f"@{node.id}") if self.hash and node.id is not None else "")
        title = f"Declared in {node.location}" if self.class_location and node.location else None
        text = self._span(state, "object", node.value or "", title=title)
        return text + (" " + self._span(state, "hash", f"#{node.id}") if self.hash and node.id is not None else "")

    def _ref_header(self, node: Value, state: _RenderPass) -> str:
        text = self._span(state, "object", node.value or "")
        return text + (" " + self._span(state, "hash", f"#{node.ref}") if self.hash else "")

    def _key(self, item: Item, state: _RenderPass) -> str:
        if item.visibility is not None:
            return self._span(state, item.visibility.value, str(item.key)) + ": "
        if item.key is None:
            return ""
        if isinstance(item.key, str) and not item.raw_key:
            return self._span(state, "key", quote(item.key)) + " => "
        return self._span(state, "key", str(item.key)) + " => "

    def _indent(self, depth: int, state: _RenderPass) -> str:
        return self._span(state, "indent", "   " + "|  " * depth)

    def _toggle(
        self,
        header: str,
        node: Value,
        ref: int | None,
        collapsed: bool = True,
        deferred: bool = False,
    ) -> str:
        classes = "vardump-toggle" + (" vardump-collapsed" if collapsed else "")
        attrs = ""
        if deferred:
            attrs = (
                f' data-vardump-ref="{ref}"'
                f' data-vardump-type="{html.escape(node.value or "")}"'
                f' data-vardump-count="{node.length if node.length is not None else ""}"'
            )
        return f'<span class="{classes}"{attrs}>{header}</span>'

    def _render_location(self, location: SourceLocation, state: _RenderPass) -> str:
        if not state.html:
            return f"in {location}\n"
        title = f' title="{html.escape(location.code)}"' if location.code else ""
        return f'<span class="vardump-dump-location"{title}>in {html.escape(str(location))}</span>\n'

    def _span(self, state: _RenderPass, cls: str, text: str, title: str | None = None) -> str:
        if state.html:
            title_attr = f' title="{html.escape(title)}"' if title else ""
            return f'<span class="vardump-dump-{cls}"{title_attr}>{html.escape(text)}</span>'
        code = state.colors.get(cls)
        return f"\x1b[{code}m{text}\x1b[0m" if code else text

    def _is_collapsed(self, count: int, depth: int) -> bool:
        if depth == 0:
            if isinstance(self.collapse_top, bool):
                return self.collapse_top
            return count >= self.collapse_top
        return count >= self.collapse_sub


def _transport(node: Value) -> dict[str, Any]:
    if node.is_container and node.id is not None:
        return node.reference().to_transport()
    return node.to_transport()


def _referenced_ids(root: Value) -> set[int]:
    found: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == ValueType.REFERENCE and node.ref is not None:
            found.add(node.ref)
        stack.extend(item.value for item in node.items or ())
    return found
