"""Shared test fixtures for tablewire.

Provides reusable fixtures for isolating configuration, managing output
state, and building clients on top of :class:`httpx.MockTransport`. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from tablewire.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    Tests that install a verbose manager to inspect debug traces must not
    leak it into the next test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_CACHE_HOME to subdirectories of tmp_path
    so that tests never touch real user config, and clears all
    TABLEWIRE_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setattr("tablewire.config._is_xdg_platform", lambda: True)

    for var in [
        "TABLEWIRE_API_KEY",
        "TABLEWIRE_BASE_ID",
        "TABLEWIRE_ENDPOINT_URL",
        "TABLEWIRE_API_VERSION",
        "TABLEWIRE_MAX_RETRIES",
        "TABLEWIRE_RETRY_INITIAL_DELAY_MS",
        "TABLEWIRE_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)

    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a verbose, colourless OutputManager so debug traces reach stderr."""
    output = OutputManager(no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Transport fixtures
# ---------------------------------------------------------------------------


class RecordingTransport:
    """Mock transport that replays queued responses and records every request.

    Each queued item is either an :class:`httpx.Response` or a callable
    taking the :class:`httpx.Request`. When the queue runs dry the last
    item is reused.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queue: list[Any] = []

    def queue(self, *items: Any) -> RecordingTransport:
        self._queue.extend(items)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._queue:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        item = self._queue.pop(0) if len(self._queue) > 1 else self._queue[0]
        if callable(item):
            return item(request)
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Retry sleep replacement that records the requested delays (seconds)."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep

