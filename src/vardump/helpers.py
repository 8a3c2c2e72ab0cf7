# vardump/helpers.py
"""Small helpers shared by the dumper and the deferred content store."""

from __future__ import annotations

import inspect
import linecache
import os
import re
import secrets
import sys
from collections.abc import Mapping
from functools import cache
from typing import Any, TextIO

from vardump.config import AJAX_HEADER
from vardump.models import SourceLocation

AJAX_ID_PATTERN = re.compile(r"^\w{10,15}$")
SURROGATES = re.compile("[\ud800-\udfff]")


def create_id() -> str:
    """Fresh correlation id: 10 hex characters."""
    return secrets.token_hex(5)


def header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def is_ajax(headers: Mapping[str, str]) -> bool:
    """True when the request carries a well-formed correlation header."""
    value = header(headers, AJAX_HEADER)
    return value is not None and AJAX_ID_PATTERN.match(value) is not None


def detect_colors(stream: TextIO | None = None) -> bool:
    """Whether ANSI colors should be written to ``stream``."""
    if os.getenv("NO_COLOR"):
        return False
    if os.getenv("FORCE_COLOR"):
        return True
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    try:
        tty = bool(isatty and isatty())
    except ValueError:  # closed stream
        return False
    return tty and os.getenv("TERM") != "dumb"


def get_class_name(obj: Any) -> str:
    cls = type(obj)
    module = getattr(cls, "__module__", None)
    name = getattr(cls, "__qualname__", cls.__name__)
    if module in (None, "builtins"):
        return name
    return f"{module}.{name}"


@cache
def get_class_location(cls: type) -> str | None:
    """``file:line`` where ``cls`` is declared, when the source is known."""
    try:
        file = inspect.getsourcefile(cls)
        _, line = inspect.getsourcelines(cls)
    except (OSError, TypeError):
        return None
    if not file:
        return None
    return f"{file}:{line}"


def find_location(skip_prefix: str = "vardump") -> SourceLocation | None:
    """The first caller frame outside the ``vardump`` package."""
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if module != skip_prefix and not module.startswith(skip_prefix + "."):
            file = frame.f_code.co_filename
            line = frame.f_lineno
            code = linecache.getline(file, line).strip() or None
            return SourceLocation(file=file, line=line, code=code)
        frame = frame.f_back
    return None
