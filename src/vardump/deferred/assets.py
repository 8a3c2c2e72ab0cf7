# vardump/deferred/assets.py
"""
Static CSS and JavaScript shipped with vardump.

Files live in the ``vardump/assets`` package-data directory and are read
through importlib.resources, so they work from a wheel or a zip as well as
from a checkout. Custom files supplied by the host application are read
from disk on every request.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from functools import cache
from importlib import resources
from pathlib import Path

from vardump.exceptions import InvalidOptionError

logger = logging.getLogger(__name__)

DUMPER_CSS = ("toggle.css", "dumper-light.css", "dumper-dark.css")
DUMPER_JS = ("toggle.js", "dumper.js")
BAR_CSS = ("bar.css", "toggle.css", "dumper-light.css", "dumper-dark.css", "bluescreen.css")
BAR_JS = ("bar.js", "toggle.js", "dumper.js", "bluescreen.js")


@cache
def read_asset(name: str) -> str:
    """Contents of a built-in asset."""
    return resources.files("vardump").joinpath("assets", name).read_text(encoding="utf-8")


def read_assets(names: Iterable[str]) -> str:
    return "".join(read_asset(name) for name in names)


def wrap_script(source: str) -> str:
    """Isolate a script in its own function scope."""
    return f"(function() {{\n{source}\n}})();\n"


class AssetBundle:
    """
    The stylesheet and script bundle of the debug bar.

    Raises:
        InvalidOptionError: when a custom file does not exist.
    """

    def __init__(self, custom_css_files: Iterable[str | Path] = (), custom_js_files: Iterable[str | Path] = ()):
        self.custom_css_files = [Path(path) for path in custom_css_files]
        self.custom_js_files = [Path(path) for path in custom_js_files]
        for option, paths in (("custom_css_files", self.custom_css_files), ("custom_js_files", self.custom_js_files)):
            for path in paths:
                if not path.is_file():
                    raise InvalidOptionError(option, f"file not found: {path}")

    def styles(self) -> str:
        custom = "".join(path.read_text(encoding="utf-8", errors="replace") for path in self.custom_css_files)
        return read_assets(BAR_CSS) + custom

    def script(self) -> str:
        """
        Bootstrap script: a snippet that injects the styles into the page
        (carrying the nonce of the including script), the built-in scripts
        each in its own scope, then the custom scripts as they are.
        """
        parts = [
            "'use strict';\n",
            "(function() {\n"
            "\tvar el = document.createElement('style');\n"
            "\tvar nonce = document.currentScript && (document.currentScript.getAttribute('nonce') || document.currentScript.nonce);\n"
            "\tif (nonce) { el.setAttribute('nonce', nonce); }\n"
            "\tel.className = 'vardump-debug';\n"
            f"\tel.textContent = {json.dumps(self.styles())};\n"
            "\tdocument.head.appendChild(el);\n"
            "})();\n",
        ]
        parts.extend(wrap_script(read_asset(name)) for name in BAR_JS)
        parts.extend(path.read_text(encoding="utf-8", errors="replace") for path in self.custom_js_files)
        return "".join(parts)
