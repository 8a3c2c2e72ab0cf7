# vardump/deferred/content.py
"""
Deferred content store.

Content produced during one request (the debug bar, an error screen) is
parked in the session under the request's correlation id and fetched by
the browser with a follow-up request for ``content.<id>`` or
``content-ajax.<id>``. Every entry is delivered at most once.

Request ids come from the ``X-Vardump-Ajax`` header when the request is
itself a follow-up, otherwise a fresh one is generated.

Retention: on every served request each category keeps only its 10 most
recent entries, and entries older than 60 seconds are dropped.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from vardump.config import AJAX_HEADER, JS_NAMESPACE, RETENTION_MAX_AGE_SECONDS, RETENTION_MAX_ENTRIES
from vardump.deferred.assets import AssetBundle
from vardump.deferred.session import DeferredEntry, SessionBackend
from vardump.helpers import SURROGATES, create_id, header, is_ajax

logger = logging.getLogger(__name__)

CONTENT_ASSET = re.compile(r"^content(-ajax)?\.(\w+)$")

BAR = "bar"
BLUESCREEN = "bluescreen"


class AssetOutcome(str, Enum):
    STATIC_BUNDLE = "static_bundle"
    PAYLOAD = "payload"
    UNHANDLED = "unhandled"


class ServeResult(BaseModel):
    """What the host should send for an asset request."""

    outcome: AssetOutcome
    headers: dict[str, str] = Field(default_factory=dict)
    remove_headers: list[str] = Field(default_factory=list)
    body: str = ""

    @property
    def handled(self) -> bool:
        return self.outcome != AssetOutcome.UNHANDLED


def encode_payload(content: str) -> str:
    """JSON for a script body: slashes and Unicode kept as they are."""
    return SURROGATES.sub("\ufffd", json.dumps(content, ensure_ascii=False))


class DeferredContent:
    """
    Session-backed store of per-request deferred content.

    Args:
        backend: session storage
        headers: headers of the current request
        custom_css_files: stylesheets appended to the bundle
        custom_js_files: scripts appended to the bundle
        clock: returns the current Unix time

    Raises:
        InvalidOptionError: when a custom asset file does not exist.
    """

    def __init__(
        self,
        backend: SessionBackend,
        headers: Mapping[str, str] | None = None,
        custom_css_files: Iterable[str | Path] = (),
        custom_js_files: Iterable[str | Path] = (),
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.headers = dict(headers or {})
        self.assets = AssetBundle(custom_css_files, custom_js_files)
        self.clock = clock
        self._request_id = header(self.headers, AJAX_HEADER) or create_id()

    @property
    def request_id(self) -> str:
        return self._request_id

    def is_available(self) -> bool:
        return bool(self.backend.is_active())

    def is_ajax(self) -> bool:
        return is_ajax(self.headers)

    def items(self, category: str) -> dict[str, Any]:
        """
        Entries of ``category`` by request id, oldest first.

        Writes go straight to the session. Without a session a detached
        empty dict is returned and nothing is persisted.
        """
        if not self.is_available():
            return {}
        return self.backend.namespace(category)

    def store(self, category: str, content: str | bytes, request_id: str | None = None) -> bool:
        """Store ``content`` for a request (the current one by default)."""
        if not self.is_available():
            logger.debug("No session, dropping %s content", category)
            return False
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")

        request_id = request_id or self.request_id
        items = self.items(category)
        items.pop(request_id, None)  # re-inserted as the newest entry
        items[request_id] = DeferredEntry(time=self.clock(), content=content).model_dump()
        return True

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    def serve(self, asset_id: str | None) -> ServeResult:
        """
        Answer an asset request.

        ``"js"`` is the static bundle and needs no session. ``content.<id>``
        and ``content-ajax.<id>`` deliver (and delete) the entries stored
        for ``<id>``. Anything else is left to the host.
        """
        if asset_id == "js":
            return ServeResult(
                outcome=AssetOutcome.STATIC_BUNDLE,
                headers={
                    "Content-Type": "application/javascript; charset=UTF-8",
                    "Cache-Control": "max-age=864000",
                },
                remove_headers=["Pragma", "Set-Cookie"],
                body=self.assets.script(),
            )

        if not self.is_available():
            return ServeResult(outcome=AssetOutcome.UNHANDLED)

        self.sweep()

        match = CONTENT_ASSET.match(asset_id) if isinstance(asset_id, str) else None
        if match is not None:
            ajax, request_id = bool(match.group(1)), match.group(2)
            body = "" if ajax else self.assets.script()

            bar = self._take(BAR, request_id)
            if bar is not None:
                method = "loadAjax" if ajax else "init"
                body += f"{JS_NAMESPACE}.Debug.{method}({encode_payload(bar.content)});\n"

            bluescreen = self._take(BLUESCREEN, request_id)
            if bluescreen is not None:
                body += f"{JS_NAMESPACE}.BlueScreen.loadAjax({encode_payload(bluescreen.content)});\n"

            logger.debug(
                "Served content for %s (bar=%s, bluescreen=%s)", request_id, bar is not None, bluescreen is not None
            )
            return ServeResult(
                outcome=AssetOutcome.PAYLOAD,
                headers={
                    "Content-Type": "application/javascript; charset=UTF-8",
                    "Cache-Control": "max-age=60",
                },
                remove_headers=["Set-Cookie"],
                body=body,
            )

        headers = {AJAX_HEADER: "1"} if self.is_ajax() else {}
        return ServeResult(outcome=AssetOutcome.UNHANDLED, headers=headers)

    def _take(self, category: str, request_id: str) -> DeferredEntry | None:
        raw = self.items(category).pop(request_id, None)
        if raw is None:
            return None
        try:
            return DeferredEntry.model_validate(raw)
        except ValidationError:
            logger.warning("Dropping malformed %s entry for %s", category, request_id)
            return None

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """Apply retention to every category; returns the number of entries removed."""
        if not self.is_available():
            return 0

        cutoff = self.clock() - RETENTION_MAX_AGE_SECONDS
        removed = 0
        for category in self.backend.categories():
            items = self.backend.namespace(category)
            keys = list(items)
            recent = set(keys[-RETENTION_MAX_ENTRIES:])
            for key in keys:
                if key not in recent or not _is_fresh(items[key], cutoff):
                    del items[key]
                    removed += 1

        if removed:
            logger.debug("Swept %d deferred entries", removed)
        return removed


def _is_fresh(entry: Any, cutoff: float) -> bool:
    if not isinstance(entry, Mapping):
        return False
    stored = entry.get("time")
    return isinstance(stored, (int, float)) and stored > cutoff
