"""Query façade over the cached, merged event list."""

from __future__ import annotations

import functools
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Mapping

import requests

from ntvsports import ScrapedStream, ServerConfig, SportEvent, UserConfig
from ntvsports.cache import TTLCache
from ntvsports.events import fetch_server_events
from ntvsports.fetcher import create_session, fetch_html
from ntvsports.registry import ALL_CATALOG_ID, SERVERS, enabled_servers, strip_catalog_prefix
from ntvsports.settings import MAX_WORKERS
from ntvsports.streams import playback_headers, scrape_streams, watch_in_browser

logger = logging.getLogger(__name__)

ALL_CATEGORIES = ("", "all", ALL_CATALOG_ID)


def normalize_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def merge_events(event_lists: Iterable[Iterable[SportEvent]]) -> list[SportEvent]:
    """Merge per-server lists: live first, then by time, then by name.

    Events whose names differ only in case or punctuation are the same
    event; the first one in sort order is kept.
    """
    merged = [e for events in event_lists for e in events]
    merged.sort(key=lambda e: (not e.is_live, e.timestamp, e.name.lower()))

    unique: list[SportEvent] = []
    seen: set[str] = set()
    for event in merged:
        key = normalize_name(event.name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def filter_by_category(events: list[SportEvent], catalog_id: str | None) -> list[SportEvent]:
    if not catalog_id or catalog_id in ALL_CATEGORIES:
        return list(events)
    category_id = strip_catalog_prefix(catalog_id)
    return [e for e in events if e.matched_category.id == category_id]


def search(events: list[SportEvent], query: str) -> list[SportEvent]:
    """Case-insensitive substring search over name and categories."""
    q = (query or "").strip().lower()
    if not q:
        return list(events)
    return [
        e for e in events
        if q in e.name.lower()
        or q in e.category.lower()
        or q in e.matched_category.name.lower()
    ]


class EventCatalog:
    """Scrape-classify-cache pipeline behind the addon's handlers.

    Every public method returns plain data; upstream failures degrade to
    empty results rather than raising.
    """

    def __init__(
        self,
        cache: TTLCache | None = None,
        fetch: Callable[..., str] | None = None,
        session: requests.Session | None = None,
        servers: Mapping[str, ServerConfig] = SERVERS,
        max_workers: int = MAX_WORKERS,
    ):
        self.cache = cache if cache is not None else TTLCache()
        self.servers = servers
        self.max_workers = max_workers
        if fetch is None:
            if session is None:
                session = create_session()
            fetch = functools.partial(fetch_html, session=session)
        self.fetch = fetch

    def enabled_servers(self, config: UserConfig | None = None) -> list[ServerConfig]:
        return enabled_servers(config.servers if config else None, self.servers)

    def get_all_events(self, config: UserConfig | None = None) -> list[SportEvent]:
        servers = self.enabled_servers(config)
        key = ("events", tuple(s.id for s in servers))
        return list(self.cache.get_or_load(key, lambda: self._load_events(servers)))

    def get_events_by_category(self, catalog_id: str, config: UserConfig | None = None) -> list[SportEvent]:
        return filter_by_category(self.get_all_events(config), catalog_id)

    def search_events(self, query: str, config: UserConfig | None = None) -> list[SportEvent]:
        return search(self.get_all_events(config), query)

    def get_event_by_id(self, event_id: str, config: UserConfig | None = None) -> SportEvent | None:
        for event in self.get_all_events(config):
            if event.id == event_id:
                return event
        return None

    def fetch_stream_urls(self, event_link: str, server: ServerConfig) -> list[ScrapedStream]:
        key = ("streams", event_link)
        return list(self.cache.get_or_load(key, lambda: self._load_streams(event_link, server)))

    def _load_events(self, servers: list[ServerConfig]) -> tuple[SportEvent, ...]:
        if not servers:
            return ()

        logger.info("Fetching fresh events from %d server(s)", len(servers))
        workers = max(1, min(self.max_workers, len(servers)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(self._safe_fetch_server, servers))

        events = merge_events(results)
        if not events:
            logger.warning("No events fetched from any server")
        else:
            logger.info("Total unique events: %d", len(events))
        return tuple(events)

    def _safe_fetch_server(self, server: ServerConfig) -> list[SportEvent]:
        try:
            return fetch_server_events(server, fetch=self.fetch)
        except Exception:
            logger.exception("Unexpected error scraping %s", server.name)
            return []

    def _load_streams(self, event_link: str, server: ServerConfig) -> tuple[ScrapedStream, ...]:
        try:
            return tuple(scrape_streams(event_link, server, fetch=self.fetch))
        except Exception:
            logger.exception("Unexpected error extracting streams from %s", event_link)
            return (watch_in_browser(event_link, server, playback_headers(server.base_url)),)
