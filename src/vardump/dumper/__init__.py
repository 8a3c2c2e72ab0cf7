# vardump/dumper/__init__.py
"""
Dumper: describe values into a bounded tree, render it as HTML or text.
"""

from .context import TERMINAL_COLORS, DumpContext, get_context, set_context
from .describer import Describer, Description
from .dumper import Dumper
from .exposer import ExposerEntry, ExposerRegistry, Member
from .options import DumpOptions
from .renderer import Renderer
from .snapshot import SnapshotTable

__all__ = [
    "TERMINAL_COLORS",
    "Describer",
    "Description",
    "DumpContext",
    "DumpOptions",
    "Dumper",
    "ExposerEntry",
    "ExposerRegistry",
    "Member",
    "Renderer",
    "SnapshotTable",
    "get_context",
    "set_context",
]
