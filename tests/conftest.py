# tests/conftest.py
"""
Shared pytest fixtures and configuration for vardump tests.
"""

import io
import logging

import pytest

from vardump.deferred import DeferredContent, InMemorySessionBackend
from vardump.dumper import DumpContext, set_context

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("vardump").setLevel(logging.DEBUG)


class FakeClock:
    """Deterministic clock for retention tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def fresh_context(monkeypatch):
    """Each test starts without a current dump context and without forced colors."""
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    set_context(None)
    yield
    set_context(None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return InMemorySessionBackend()


@pytest.fixture
def store(backend, clock):
    """DeferredContent over an in-memory session, for a non-ajax request."""
    return DeferredContent(backend, clock=clock)


@pytest.fixture
def html_context():
    """Dump context of an HTML response writing into a buffer."""
    return DumpContext(cli=False, content_type="text/html; charset=utf-8", stream=io.StringIO())


@pytest.fixture
def cli_context():
    """Dump context of a CLI run writing into a buffer."""
    return DumpContext(cli=True, stream=io.StringIO())
