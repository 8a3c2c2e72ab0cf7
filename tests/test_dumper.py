# tests/test_dumper.py
"""
Tests for the Dumper façade and the dump context.

Covers:
- to_text / to_terminal / to_html
- dump(): terminal, text and HTML modes, returned value
- Asset bootstrap: once per context, production mode, debug bar, nonce
- Live snapshot and caller-supplied snapshot (collecting mode)
- Custom exposers passed as options
- Current context handling
"""

import io

import pytest

from vardump import dump
from vardump.dumper import DumpContext, Dumper, SnapshotTable, get_context
from vardump.exceptions import InvalidOptionError
from vardump.models import DumpMode

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Money:
    def __init__(self, amount, currency):
        self.amount = amount
        self.currency = currency


# ---------------------------------------------------------------------------
# Rendering entry points
# ---------------------------------------------------------------------------


class TestEntryPoints:
    def test_to_text(self, cli_context):
        assert Dumper.to_text([1], context=cli_context) == "list (1)\n   0 => 1\n"

    def test_to_terminal_uses_palette(self, cli_context):
        text = Dumper.to_terminal(42, context=cli_context)
        assert text == "\x1b[1;32m42\x1b[0m\n"

    def test_to_terminal_custom_palette(self):
        context = DumpContext(terminal_colors={})
        assert Dumper.to_terminal(42, context=context) == "42\n"

    def test_to_html(self, html_context):
        html = Dumper.to_html({"a": 1}, {"lazy": False}, context=html_context)
        assert html.startswith("<pre")
        assert "vardump-dump-key" in html

    def test_to_html_hidden_by_key(self, html_context):
        html = Dumper.to_html("s3cret", {"keys_to_hide": ["password"]}, key="password", context=html_context)
        assert "*****" in html
        assert "s3cret" not in html

    def test_options_rejected_at_construction(self):
        with pytest.raises(InvalidOptionError):
            Dumper({"bogus": True})

    def test_object_exposer_option(self, cli_context):
        options = {"object_exposers": [(Money, lambda m: [("amount", m.amount)])]}
        text = Dumper.to_text(Money(5, "EUR"), options, context=cli_context)
        assert "amount: 5" in text
        assert "currency" not in text

    def test_resource_exposer_option_replaces_tag(self, cli_context):
        options = {"resource_exposers": {"stream": (io.IOBase, lambda s: {"custom": True})}}
        text = Dumper.to_text(io.StringIO(), options, context=cli_context)
        assert text.startswith("stream resource @1\n")
        assert "'custom' => True" in text

    def test_context_registries_are_used(self, cli_context):
        cli_context.object_exposers.register(Money, lambda m: [("total", f"{m.amount} {m.currency}")], first=True)
        text = Dumper.to_text(Money(5, "EUR"), context=cli_context)
        assert "total: '5 EUR'" in text


# ---------------------------------------------------------------------------
# dump()
# ---------------------------------------------------------------------------


class TestDump:
    def test_returns_value(self, cli_context):
        value = {"a": 1}
        assert Dumper.dump(value, context=cli_context) is value

    def test_terminal_mode_without_tty(self, cli_context):
        Dumper.dump(5, context=cli_context)
        assert cli_context.stream.getvalue() == "5\n"

    def test_terminal_mode_forced_colors(self, cli_context, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "1")
        Dumper.dump(5, context=cli_context)
        assert cli_context.stream.getvalue() == "\x1b[1;32m5\x1b[0m\n"

    def test_text_mode(self):
        context = DumpContext(cli=False, content_type="application/json", stream=io.StringIO())
        Dumper.dump("x", context=context)
        assert context.stream.getvalue() == "'x'\n"

    def test_html_mode(self, html_context):
        Dumper.dump([1], context=html_context)
        out = html_context.stream.getvalue()

        assert out.index("<style>") < out.index("<script>") < out.index("<pre")
        assert '<span class="vardump-dump-location"' in out[out.index("<pre") :]

    def test_html_location_can_be_disabled(self, html_context):
        Dumper.dump(1, {"location": False}, context=html_context)
        out = html_context.stream.getvalue()
        assert "<pre" in out
        assert '<span class="vardump-dump-location"' not in out

    def test_assets_once_per_context(self, html_context):
        Dumper.dump(1, context=html_context)
        Dumper.dump(2, context=html_context)
        assert html_context.stream.getvalue().count("<style") == 1

    def test_dump_uses_current_context(self, cli_context):
        with cli_context:
            assert dump(7) == 7
        assert cli_context.stream.getvalue() == "7\n"


class TestContextMode:
    @pytest.mark.parametrize(
        "context, mode",
        [
            (DumpContext(cli=True), DumpMode.TERMINAL),
            (DumpContext(cli=False), DumpMode.HTML),
            (DumpContext(cli=False, content_type="text/html; charset=utf-8"), DumpMode.HTML),
            (DumpContext(cli=False, content_type="application/json"), DumpMode.TEXT),
        ],
    )
    def test_mode(self, context, mode):
        assert context.mode() == mode


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


class TestRenderAssets:
    def test_style_and_script(self):
        context = DumpContext(cli=False)
        out = Dumper.render_assets(context)

        assert out.startswith("<style>")
        assert out.count("<script>") == 1
        assert out.count("</script>") == 1
        assert "<!--" not in out
        assert context.assets_sent

    def test_only_once(self):
        context = DumpContext(cli=False)
        Dumper.render_assets(context)
        assert Dumper.render_assets(context) == ""

    def test_production_mode(self):
        assert Dumper.render_assets(DumpContext(production_mode=True)) == ""

    def test_debugger_enabled_skips_script(self):
        out = Dumper.render_assets(DumpContext(debugger_enabled=True))
        assert "<style>" in out
        assert "<script" not in out

    def test_nonce(self):
        out = Dumper.render_assets(DumpContext(nonce='n"1'))
        assert '<style nonce="n&quot;1">' in out
        assert '<script nonce="n&quot;1">' in out


# ---------------------------------------------------------------------------
# Collecting mode
# ---------------------------------------------------------------------------


class TestCollecting:
    def test_live_snapshot(self, html_context):
        html = Dumper.to_html([1, [2]], {"live": True}, context=html_context)

        assert "data-vardump-snapshot" not in html
        assert "data-vardump-dump='" in html
        assert len(html_context.live_snapshot) == 2

        attribute = html_context.flush_live()
        assert attribute.startswith("'[") and attribute.endswith("]'")
        assert len(html_context.live_snapshot) == 0

    def test_live_ids_keep_increasing(self, html_context):
        Dumper.to_html([1], {"live": True}, context=html_context)
        html_context.flush_live()
        html = Dumper.to_html([2], {"live": True}, context=html_context)
        assert '"ref":2' in html

    def test_live_forces_lazy(self, html_context):
        html = Dumper.to_html(1, {"live": True}, context=html_context)
        assert "vardump-dump-lazy" in html

    def test_caller_snapshot(self, html_context):
        table = SnapshotTable()
        Dumper.to_html([1], {"snapshot": table}, context=html_context)
        Dumper.to_html([2], {"snapshot": table}, context=html_context)
        assert len(table) == 2

        attribute = Dumper.format_snapshot_attribute(table)
        assert attribute.startswith("'[{")
        assert len(table) == 0

    def test_collecting_renders_lazily_even_if_eager_requested(self, html_context):
        html = Dumper.to_html([1, 2], {"live": True, "lazy": False}, context=html_context)

        assert "vardump-dump-lazy" in html
        assert "data-vardump-dump='" in html
        assert "vardump-dump-number" not in html
        assert len(html_context.live_snapshot) == 1


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class TestCurrentContext:
    def test_get_context_creates_once(self):
        assert get_context() is get_context()

    def test_with_block_sets_and_restores(self):
        outer = get_context()
        with DumpContext(cli=False) as inner:
            assert get_context() is inner
        assert get_context() is outer

    def test_nested_blocks(self):
        with DumpContext() as first:
            with DumpContext() as second:
                assert get_context() is second
            assert get_context() is first
