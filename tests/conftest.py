"""Shared fixtures: HTML pages, a controllable clock and an offline fetcher."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import pytest
import requests

from ntvsports import ServerConfig

FIXTURE_DIR = Path(__file__).parent / "fixtures"

# 2025-01-28 18:26:40 UTC
NOW = 1738088800


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetch:
    """Stands in for fetch_html. Pages map URL to body, or to an exception to raise."""

    def __init__(self, pages: dict[str, str | Exception]):
        self.pages = pages
        self.calls: list[tuple[str, str | None]] = []
        self._lock = threading.Lock()

    def __call__(self, url: str, referer: str | None = None, **kwargs) -> str:
        with self._lock:
            self.calls.append((url, referer))
        page = self.pages.get(url)
        if page is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(page, Exception):
            raise page
        return page

    def count(self, url: str) -> int:
        return sum(1 for u, _ in self.calls if u == url)


@pytest.fixture
def server() -> ServerConfig:
    return ServerConfig(
        id="kobra",
        name="NTVStream KOBRA",
        base_url="https://ntvstream.cx/matches/kobra",
        enabled=True,
        priority=1,
        description="KOBRA Server - Primary",
    )


@pytest.fixture
def listing_html() -> str:
    return (FIXTURE_DIR / "listing_page.html").read_text(encoding="utf-8")


@pytest.fixture
def watch_html() -> str:
    return (FIXTURE_DIR / "watch_page.html").read_text(encoding="utf-8")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_fetch() -> Callable[[dict], FakeFetch]:
    return FakeFetch
