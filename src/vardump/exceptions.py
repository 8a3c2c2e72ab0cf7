# vardump/exceptions.py
"""Exception types raised by vardump.

Only configuration mistakes raise. Describing, rendering and serving
deferred content degrade instead of failing.
"""

from __future__ import annotations


class VarDumpError(Exception):
    """Base class for vardump errors."""


class InvalidOptionError(VarDumpError, ValueError):
    """An option, or a combination of options, cannot be honoured."""

    def __init__(self, option: str, reason: str):
        self.option = option
        self.reason = reason
        super().__init__(f"Invalid option '{option}': {reason}")
