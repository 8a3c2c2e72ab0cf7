# tests/test_describer.py
"""
Tests for the describer.

Covers:
- Scalars, strings, bytes and truncation
- Sequences, mappings, sets and non-string keys
- Identity: cycles, shared references, no merging of equal values
- Limits: max_depth, max_items, bounded node count
- Hiding: keys_to_hide at any depth, Class.attr form, scrubber
- Objects: member visibility grouping, class location, debug_info
- Totality: failures become opaque nodes instead of exceptions
"""

import dataclasses
import logging
from collections.abc import Mapping

import pytest

from vardump.dumper.describer import Describer
from vardump.dumper.exposer import ExposerRegistry
from vardump.dumper.snapshot import SnapshotTable
from vardump.models import HideReason, ScalarKind, ValueType, Visibility

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class User:
    def __init__(self, name, password):
        self.name = name
        self.password = password


class Mixed:
    def __init__(self):
        self._hint = "protected"
        self.__token = "private"
        self.visible = "public"


class Declared:
    name: str

    def __init__(self):
        self.name = "declared"
        self.extra = "dynamic"


class WithDebugView:
    def __init__(self):
        self.internal = "noise"

    def __rich_repr__(self):
        yield "shown", 1


class BrokenMapping(Mapping):
    def __getitem__(self, key):
        raise KeyError(key)

    def __iter__(self):
        raise RuntimeError("cannot iterate")

    def __len__(self):
        raise RuntimeError("no length")


@dataclasses.dataclass
class Pair:
    left: int
    right: int


def _count_nodes(node) -> int:
    return 1 + sum(_count_nodes(item.value) for item in node.items or ())


def _item(node, key):
    for item in node.items:
        if item.key == key:
            return item
    raise AssertionError(f"no item {key!r}")


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


class TestScalars:
    @pytest.mark.parametrize(
        "value, kind, text",
        [
            (None, ScalarKind.NONE, "None"),
            (True, ScalarKind.BOOL, "True"),
            (42, ScalarKind.NUMBER, "42"),
            (1.5, ScalarKind.NUMBER, "1.5"),
            ("hi", ScalarKind.STRING, "hi"),
        ],
    )
    def test_scalar_nodes(self, value, kind, text):
        root = Describer().describe(value).root
        assert root.type == ValueType.SCALAR
        assert root.kind == kind
        assert root.value == text

    def test_string_truncated(self):
        root = Describer(max_length=5).describe("abcdefgh").root
        assert root.type == ValueType.TRUNCATED
        assert root.value == "abcde"
        assert root.length == 8

    def test_string_at_limit_not_truncated(self):
        root = Describer(max_length=5).describe("abcde").root
        assert root.type == ValueType.SCALAR

    def test_bytes_truncated(self):
        root = Describer(max_length=2).describe(b"\x00abc").root
        assert root.type == ValueType.TRUNCATED
        assert root.kind == ScalarKind.BYTES
        assert root.value == "\\x00a"
        assert root.length == 4

    def test_scalars_are_not_registered(self):
        description = Describer().describe("text")
        assert len(description.snapshot) == 0


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


class TestSequences:
    def test_list(self):
        root = Describer().describe([1, "a"]).root
        assert root.type == ValueType.SEQUENCE
        assert root.value == "list"
        assert root.length == 2
        assert [item.key for item in root.items] == [0, 1]
        assert root.id == 1

    def test_dict_keys(self):
        root = Describer().describe({"a": 1, 2: "b", (1, 2): "c", True: "d"}).root
        keys = [(item.key, item.raw_key) for item in root.items]
        assert keys == [("a", False), (2, False), ("(1, 2)", True), ("True", True)]

    def test_set_items_have_no_key(self):
        root = Describer().describe({7}).root
        assert root.items[0].key is None
        assert root.items[0].value.value == "7"

    def test_max_items(self):
        root = Describer(max_items=3).describe([1, 2, 3, 4, 5]).root
        assert len(root.items) == 3
        assert root.truncated == 2
        assert root.length == 5

    def test_max_depth(self):
        root = Describer(max_depth=1).describe({"a": {"b": 1}}).root
        inner = root.items[0].value
        assert inner.depth_limited
        assert inner.items is None
        assert inner.length == 1

    def test_max_depth_zero_limits_root(self):
        root = Describer(max_depth=0).describe([1]).root
        assert root.depth_limited
        assert root.items is None


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class TestIdentity:
    def test_self_cycle_becomes_reference(self):
        data = []
        data.append(data)
        description = Describer().describe(data)

        child = description.root.items[0].value
        assert child.type == ValueType.REFERENCE
        assert child.ref == description.root.id
        assert len(description.snapshot) == 1

    def test_mutual_cycle(self):
        a, b = {}, {}
        a["b"], b["a"] = b, a
        root = Describer().describe(a).root

        back = root.items[0].value.items[0].value
        assert back.type == ValueType.REFERENCE
        assert back.ref == root.id

    def test_shared_reference(self):
        shared = [1]
        root = Describer().describe([shared, shared]).root

        first, second = root.items[0].value, root.items[1].value
        assert first.type == ValueType.SEQUENCE
        assert second.type == ValueType.REFERENCE
        assert second.ref == first.id

    def test_equal_values_are_not_merged(self):
        root = Describer().describe([[1], [1]]).root
        first, second = root.items[0].value, root.items[1].value
        assert first.type == second.type == ValueType.SEQUENCE
        assert first.id != second.id

    def test_bounded_node_count_for_cycles(self):
        a, b = [], []
        a.extend([b, a, b])
        b.extend([a, b, a])
        root = Describer(max_depth=50).describe(a).root
        # each container is expanded once; all other visits are references
        assert _count_nodes(root) == 7

    def test_object_identity(self):
        user = User("alice", "x")
        root = Describer().describe({"one": user, "two": user}).root
        assert root.items[0].value.type == ValueType.OBJECT
        assert root.items[1].value.type == ValueType.REFERENCE

    def test_shared_snapshot_across_calls(self):
        table = SnapshotTable()
        describer = Describer(snapshot=table)
        first = describer.describe([1]).root
        second = describer.describe([2]).root

        assert (first.id, second.id) == (1, 2)
        assert len(table) == 2

    def test_identity_map_is_per_call(self):
        data = [1]
        describer = Describer(snapshot=SnapshotTable())
        describer.describe(data)
        assert describer.describe(data).root.type == ValueType.SEQUENCE


# ---------------------------------------------------------------------------
# Hiding
# ---------------------------------------------------------------------------


class TestHiding:
    def test_hidden_key_at_depth(self):
        data = {"user": {"profile": {"PassWord": "secret", "name": "bob"}}}
        root = Describer(keys_to_hide=["password"]).describe(data).root
        profile = root.items[0].value.items[0].value

        hidden = _item(profile, "PassWord").value
        assert hidden.type == ValueType.HIDDEN
        assert hidden.hidden == HideReason.KEY
        assert hidden.value == "*****"
        assert _item(profile, "name").value.value == "bob"

    def test_hidden_member(self):
        root = Describer(keys_to_hide=["password"]).describe(User("alice", "secret")).root
        assert _item(root, "password").value.type == ValueType.HIDDEN

    def test_hidden_qualified_member(self):
        describer = Describer(keys_to_hide=["User.password"])
        hidden = _item(describer.describe(User("a", "s")).root, "password").value
        shown = describer.describe({"password": "s"}).root.items[0].value

        assert hidden.type == ValueType.HIDDEN
        assert shown.type == ValueType.SCALAR

    def test_hidden_value_not_inspected(self):
        secret = [object()]
        description = Describer(keys_to_hide=["token"]).describe({"token": secret})
        # only the outer dict was registered
        assert len(description.snapshot) == 1

    def test_top_level_key(self):
        root = Describer(keys_to_hide=["password"]).describe("secret", key="password").root
        assert root.type == ValueType.HIDDEN

    def test_scrubber(self):
        describer = Describer(scrubber=lambda key, value: key.startswith("secret_"))
        root = describer.describe({"secret_a": 1, "plain": 2}).root

        assert root.items[0].value.hidden == HideReason.SCRUBBER
        assert root.items[1].value.value == "2"

    def test_scrubber_only_sees_string_keys(self):
        seen = []
        Describer(scrubber=lambda key, value: seen.append(key) or False).describe({"a": 1, 2: 3})
        assert seen == ["a"]

    def test_failing_scrubber_hides(self, caplog):
        def scrubber(key, value):
            raise RuntimeError("boom")

        with caplog.at_level(logging.WARNING, logger="vardump"):
            root = Describer(scrubber=scrubber).describe({"a": 1}).root

        assert root.items[0].value.type == ValueType.HIDDEN
        assert "Scrubber failed" in caplog.text


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------


class TestObjects:
    def test_object_members(self):
        root = Describer().describe(User("alice", "pw")).root
        assert root.type == ValueType.OBJECT
        assert root.value.endswith("User")
        assert [item.key for item in root.items] == ["name", "password"]
        assert all(item.visibility == Visibility.PUBLIC for item in root.items)

    def test_visibility_grouping(self):
        root = Describer().describe(Mixed()).root
        assert [(item.key, item.visibility) for item in root.items] == [
            ("visible", Visibility.PUBLIC),
            ("_hint", Visibility.PROTECTED),
            ("_Mixed__token", Visibility.PRIVATE),
        ]

    def test_dynamic_members(self):
        root = Describer().describe(Declared()).root
        assert _item(root, "name").visibility == Visibility.PUBLIC
        assert _item(root, "extra").visibility == Visibility.DYNAMIC

    def test_dataclass(self):
        root = Describer().describe(Pair(1, 2)).root
        assert [item.key for item in root.items] == ["left", "right"]

    def test_max_items_on_object(self):
        root = Describer(max_items=1).describe(Pair(1, 2)).root
        assert len(root.items) == 1
        assert root.truncated == 1

    def test_class_location(self):
        root = Describer(location=True).describe(Pair(1, 2)).root
        assert root.location is not None
        assert "test_describer.py:" in root.location

    def test_source_location(self):
        description = Describer(location=True).describe(1)
        assert description.location is not None
        assert description.location.file.endswith("test_describer.py")

    def test_debug_info(self):
        plain = Describer().describe(WithDebugView()).root
        debug = Describer(debug_info=True).describe(WithDebugView()).root

        assert [item.key for item in plain.items] == ["internal"]
        assert [item.key for item in debug.items] == ["shown"]

    def test_custom_exposer(self):
        registry = ExposerRegistry.default_objects()
        registry.register(User, lambda user: [("display", user.name.title())], first=True)
        root = Describer(object_exposers=registry).describe(User("alice", "pw")).root

        assert [(item.key, item.value.value) for item in root.items] == [("display", "Alice")]

    def test_failing_exposer_falls_back_to_structure(self):
        def broken(user):
            raise RuntimeError("broken exposer")

        registry = ExposerRegistry([])
        registry.register(User, broken)
        root = Describer(object_exposers=registry).describe(User("alice", "pw")).root

        assert [item.key for item in root.items] == ["name", "password"]


# ---------------------------------------------------------------------------
# Totality
# ---------------------------------------------------------------------------


class TestTotality:
    def test_broken_mapping_becomes_opaque(self):
        root = Describer().describe(BrokenMapping()).root
        assert root.type == ValueType.RESOURCE
        assert root.items[0].key == "error"
        assert "RuntimeError" in root.items[0].value.value

    def test_broken_value_inside_container(self):
        root = Describer().describe({"ok": 1, "bad": BrokenMapping()}).root
        assert root.items[0].value.value == "1"
        assert root.items[1].value.type == ValueType.RESOURCE

    def test_unrepresentable_key(self):
        class BadRepr:
            def __repr__(self):
                raise RuntimeError("no repr")

        root = Describer().describe({BadRepr(): 1}).root
        assert root.items[0].raw_key
        assert "BadRepr object" in root.items[0].key
