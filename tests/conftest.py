"""Shared test fixtures for the batch runner."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from src.models.batch import BatchItem, ProcessorFailure, ProcessorSuccess

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class InstrumentedProcessor:
    """Processor double that records calls and the concurrency high-water mark.

    Items listed in ``raise_for`` raise, items in ``fail_for`` return a
    ``ProcessorFailure``, everything else succeeds with ``counts[item.id]``
    (default 1) results after ``delay`` seconds.
    """

    def __init__(
        self,
        delay: float = 0.0,
        raise_for: set[str] | None = None,
        fail_for: set[str] | None = None,
        counts: dict[str, int] | None = None,
    ) -> None:
        self.delay = delay
        self.raise_for = raise_for or set()
        self.fail_for = fail_for or set()
        self.counts = counts or {}
        self.calls: list[str] = []
        self.current = 0
        self.high_water = 0
        self._lock = threading.Lock()

    def process(self, item: BatchItem) -> ProcessorSuccess | ProcessorFailure:
        with self._lock:
            self.calls.append(item.id)
            self.current += 1
            self.high_water = max(self.high_water, self.current)
        try:
            if self.delay:
                time.sleep(self.delay)
            if item.id in self.raise_for:
                msg = f"crawl of {item.id} exploded"
                raise RuntimeError(msg)
            if item.id in self.fail_for:
                return ProcessorFailure(error_message=f"{item.id} returned no pages")
            return ProcessorSuccess(produced_count=self.counts.get(item.id, 1))
        finally:
            with self._lock:
                self.current -= 1


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo logging configuration made by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_items() -> Callable[..., list[BatchItem]]:
    """Factory for ``n`` active items with ids ``source-1`` .. ``source-n``."""

    def _make(n: int, inactive: set[int] | None = None) -> list[BatchItem]:
        inactive = inactive or set()
        return [
            BatchItem(
                id=f"source-{i}",
                is_active=i not in inactive,
                payload={"url": f"https://example{i}.com"},
            )
            for i in range(1, n + 1)
        ]

    return _make


@pytest.fixture
def processor() -> InstrumentedProcessor:
    """Instant processor that succeeds with one result per item."""
    return InstrumentedProcessor()


@pytest.fixture
def sample_page_html() -> str:
    """Website source page with navigation, content and footer."""
    return """<!DOCTYPE html>
<html>
<head>
    <title>Acme Corp - Help Center</title>
    <style>body { font-family: sans-serif; }</style>
    <script>window.analytics = {};</script>
</head>
<body>
    <nav><ul><li>Home navigation link that is long enough</li></ul></nav>
    <main>
        <h1>Welcome to the Acme Help Center</h1>
        <p>Acme builds widgets for teams of every size and shape.</p>
        <p>Short.</p>
        <h2>Shipping and delivery policies</h2>
        <ul>
            <li>Orders ship within two business days of payment.</li>
            <li>Returns are accepted for thirty days after delivery.</li>
            <li><p>Nested paragraph inside a list item is counted once.</p></li>
        </ul>
        <p>Acme builds widgets for teams of every size and shape.</p>
    </main>
    <footer><p>Copyright 2025 Acme Corp. All rights reserved.</p></footer>
</body>
</html>"""


def wait_until(predicate: Callable[[], Any], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it is truthy or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return bool(predicate())


@pytest.fixture
def make_processor() -> type[InstrumentedProcessor]:
    """Factory for instrumented processors with custom behaviour."""
    return InstrumentedProcessor


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a predicate until it holds, for assertions on background threads."""
    return wait_until
