"""Pytest configuration and fixtures."""

import asyncio

import pytest


class ScriptedBody:
    """
    Blocking body source that replays a script of byte chunks and exceptions.

    Chunks longer than the requested size are split so that ``read(n)`` never
    returns more than ``n`` bytes.
    """

    def __init__(self, script):
        self._script = list(script)
        self.reads = []

    def read(self, size=-1):
        self.reads.append(size)
        if not self._script:
            return b""
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if 0 <= size < len(item):
            self._script.insert(0, item[size:])
            item = item[:size]
        return item


class AsyncScriptedBody(ScriptedBody):
    """Async variant of ScriptedBody; every read yields to the event loop once."""

    async def read(self, size=-1):
        await asyncio.sleep(0)
        return ScriptedBody.read(self, size)


@pytest.fixture
def scripted_body():
    """Factory for blocking scripted body sources."""
    return ScriptedBody


@pytest.fixture
def async_scripted_body():
    """Factory for async scripted body sources."""
    return AsyncScriptedBody


@pytest.fixture
def latin1_headers():
    """Header list declaring an ISO-8859-1 text body."""
    return [
        ("Content-Type", "text/plain; charset=ISO-8859-1"),
        ("Content-Length", "5"),
    ]
