# vardump/models/enums.py
"""Enums and constants for the value model."""

from enum import Enum, IntFlag

# =============================================================================
# Enums
# =============================================================================


class ValueType(str, Enum):
    """Node variants of the value model."""

    SCALAR = "scalar"
    TRUNCATED = "truncated"  # string or bytes cut at max_length
    SEQUENCE = "sequence"  # dict, list, tuple, set, ...
    OBJECT = "object"
    REFERENCE = "ref"  # already described identity
    RESOURCE = "resource"  # opaque handle: stream, socket, thread, ...
    HIDDEN = "hidden"  # suppressed by keys_to_hide or scrubber


class ScalarKind(str, Enum):
    """Kinds of scalar (and truncated string) nodes."""

    NONE = "none"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    BYTES = "bytes"


class Visibility(str, Enum):
    """
    Visibility of an object member.

    Members are grouped in this order when an object is described.
    """

    PUBLIC = "public"
    PROTECTED = "protected"  # _name
    PRIVATE = "private"  # _Class__name (name-mangled)
    DYNAMIC = "dynamic"  # not declared in the class annotations
    VIRTUAL = "virtual"  # synthesised by an exposer


class HideReason(str, Enum):
    """Why a value was hidden."""

    KEY = "key"
    SCRUBBER = "scrubber"


class DumpMode(str, Enum):
    """Output mode chosen by Dumper.dump()."""

    TERMINAL = "terminal"
    TEXT = "text"
    HTML = "html"


class Location(IntFlag):
    """Location bits accepted by the ``location`` option."""

    NONE = 0
    CLASS = 0b0001  # where classes are declared
    SOURCE = 0b0011  # additionally where dump was called


# =============================================================================
# Constants
# =============================================================================

HIDDEN_VALUE = "*****"

VISIBILITY_ORDER: dict[Visibility, int] = {v: i for i, v in enumerate(Visibility)}
