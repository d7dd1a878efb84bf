"""Event listing scraper.

Upstream listing markup is undocumented and changes without notice, so
candidates are located by trying an ordered list of selector strategies and
taking the first one that matches anything. If that yields no usable events,
every watch/match/stream anchor on the page is tried instead.
"""

from __future__ import annotations

import hashlib
import logging
import re
import time
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag

from ntvsports import ServerConfig, SportEvent
from ntvsports.fetcher import fetch_html
from ntvsports.registry import match_category

logger = logging.getLogger(__name__)

ID_PREFIX = "ntv_"
LIVE_LABEL = "🔴 LIVE"
SCHEDULED_LABEL = "Scheduled"
MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100

Strategy = Callable[[BeautifulSoup], list[Tag]]
Fetch = Callable[..., str]

LISTING_SELECTORS = (
    ".match-card",
    ".event-item",
    ".match-item",
    ".stream-item",
    ".schedule-item",
    "tr.match",
    ".competition-events li",
    "[data-event]",
    ".event-card",
    ".game-card",
    ".fixture",
    ".listing-item",
)

NAME_SELECTORS = (
    ".match-title",
    ".event-name",
    ".match-name",
    ".title",
    "h3",
    "h4",
    ".teams",
    ".event-title",
    ".fixture-teams",
)
TIME_SELECTORS = (
    ".time",
    ".time-badge",
    ".scheduled-badge",
    ".event-time",
    ".match-time",
    ".date",
    ".kickoff",
    "time",
)
CATEGORY_SELECTORS = (".category", ".sport", ".league", ".competition")
LIVE_INDICATOR_SELECTOR = ".live, .live-badge, .live-indicator, .now-live"
LINK_ATTRS = ("href", "data-href", "data-link", "data-url")
FALLBACK_ANCHOR_KEYWORDS = ("watch", "match", "stream")

ONCLICK_RE = re.compile(
    r"""(?:location(?:\.href)?\s*=|window\.open\s*\()\s*['"]([^'"]+)['"]"""
)
SOURCES_RE = re.compile(r"(\d+)\s*sources?\b", re.IGNORECASE)
LIVE_WORD_RE = re.compile(r"\blive\b", re.IGNORECASE)
LIVE_CLASS_RE = re.compile(r"(?:^|[-_])live(?:$|[-_])", re.IGNORECASE)
TZ_SUFFIX_RE = re.compile(
    r"\s+(CET|CEST|UTC|GMT|BST|EST|EDT|CST|CDT|PST|PDT|ET|PT)\s*$", re.IGNORECASE
)

DATE_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%B %d, %Y - %H:%M",
    "%b %d, %Y - %H:%M",
    "%d/%m/%Y %H:%M",
    "%d.%m.%Y %H:%M",
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
)
CLOCK_FORMATS = ("%H:%M", "%I:%M %p", "%I:%M%p")


def _css_strategy(selector: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> list[Tag]:
        return soup.select(selector)

    strategy.__name__ = f"select({selector})"
    return strategy


LISTING_STRATEGIES: list[tuple[str, Strategy]] = [
    (selector, _css_strategy(selector)) for selector in LISTING_SELECTORS
]


def generate_event_id(name: str, category: str) -> str:
    """Stable identifier for an event: same name and category, same id."""
    slug = re.sub(r"[^a-z0-9]+", "_", f"{name}_{category}".lower()).strip("_")[:50]
    digest = hashlib.sha1(f"{name}|{category}".encode("utf-8")).hexdigest()[:8]
    return f"{ID_PREFIX}{slug}_{digest}"


def parse_best_effort_time(text: str | None, now: float | None = None) -> int:
    """Parse an upstream time string into a Unix timestamp.

    Anything that reads as live, or cannot be parsed, maps to ``now``.
    Clock-only values ("20:45", "8:45 PM") are taken as today in UTC.
    """
    now_ts = int(time.time() if now is None else now)
    value = (text or "").strip()
    if not value:
        return now_ts

    lower = value.lower()
    if any(word in lower for word in ("live", "now", "playing")):
        return now_ts

    if value.isdigit() and len(value) in (10, 13):
        ts = int(value)
        return ts // 1000 if len(value) == 13 else ts

    try:
        return _to_timestamp(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass

    value = TZ_SUFFIX_RE.sub("", value)
    for fmt in DATE_FORMATS:
        try:
            return _to_timestamp(datetime.strptime(value, fmt))
        except ValueError:
            continue

    today = datetime.fromtimestamp(now_ts, tz=timezone.utc)
    for fmt in CLOCK_FORMATS:
        try:
            clock = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return int(today.replace(hour=clock.hour, minute=clock.minute, second=0, microsecond=0).timestamp())

    return now_ts


def _to_timestamp(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def find_candidates(soup: BeautifulSoup) -> tuple[str | None, list[Tag]]:
    """Return the first strategy that matches anything, with its matches."""
    for name, strategy in LISTING_STRATEGIES:
        found = strategy(soup)
        if found:
            return name, found
    return None, []


def extract_events(html: str, server: ServerConfig, now: float | None = None) -> list[SportEvent]:
    """Parse a listing page into events, deduplicated by name."""
    soup = BeautifulSoup(html, "html.parser")
    now_ts = int(time.time() if now is None else now)

    events: list[SportEvent] = []
    seen: set[str] = set()

    strategy, candidates = find_candidates(soup)
    for element in candidates:
        try:
            event = _parse_candidate(element, server, now_ts)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Skipping malformed element from %s: %s", server.id, e)
            continue
        _append_unique(events, seen, event)

    if events:
        logger.debug("%s: %d events via %s", server.id, len(events), strategy)
        return events

    # Strategy 2: any anchor that looks like it leads to a watch page
    for anchor in _fallback_anchors(soup):
        try:
            event = _parse_anchor(anchor, server, now_ts)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Skipping malformed anchor from %s: %s", server.id, e)
            continue
        _append_unique(events, seen, event)

    if events:
        logger.debug("%s: %d events via anchor fallback", server.id, len(events))
    return events


def fetch_server_events(
    server: ServerConfig,
    fetch: Fetch = fetch_html,
    now: float | None = None,
) -> list[SportEvent]:
    """Fetch and parse one server's listing. Returns [] if it is unreachable."""
    try:
        html = fetch(server.base_url, referer=server.base_url)
    except requests.RequestException as e:
        logger.warning("Error fetching from %s: %s", server.name, e)
        return []

    events = extract_events(html, server, now=now)
    logger.info("Found %d events from %s", len(events), server.name)
    return events


def _append_unique(events: list[SportEvent], seen: set[str], event: SportEvent | None) -> None:
    if event is None:
        return
    key = event.name.lower()
    if key in seen:
        return
    seen.add(key)
    events.append(event)


def _parse_candidate(element: Tag, server: ServerConfig, now_ts: int) -> SportEvent | None:
    name = _extract_name(element)
    if not name:
        return None

    link = _extract_link(element, server.base_url)
    if not link:
        return None

    time_text = _first_text(element, TIME_SELECTORS) or _attr(element, "data-time")
    raw_category = _attr(element, "data-category") or _first_text(element, CATEGORY_SELECTORS)

    return _build_event(
        name=name,
        link=link,
        time_text=time_text,
        is_live=_is_live(element, time_text),
        raw_category=raw_category,
        sources=_parse_source_count(element),
        server=server,
        now_ts=now_ts,
    )


def _parse_anchor(anchor: Tag, server: ServerConfig, now_ts: int) -> SportEvent | None:
    name = _clean_text(anchor)[:MAX_NAME_LENGTH].strip()
    href = anchor.get("href")
    if len(name) < MIN_NAME_LENGTH or not _usable_href(href):
        return None

    return _build_event(
        name=name,
        link=urljoin(server.base_url, href.strip()),
        time_text="",
        is_live=True,
        raw_category="",
        sources=1,
        server=server,
        now_ts=now_ts,
    )


def _build_event(
    name: str,
    link: str,
    time_text: str,
    is_live: bool,
    raw_category: str,
    sources: int,
    server: ServerConfig,
    now_ts: int,
) -> SportEvent:
    matched = match_category(name, raw_category)
    if is_live:
        time_str = LIVE_LABEL
        timestamp = now_ts
    else:
        time_str = time_text or SCHEDULED_LABEL
        timestamp = parse_best_effort_time(time_text, now_ts)

    return SportEvent(
        id=generate_event_id(name, matched.id),
        name=name,
        link=link,
        time_str=time_str,
        timestamp=timestamp,
        is_live=is_live,
        server=server.id,
        server_name=server.name,
        category=raw_category,
        matched_category=matched,
        sources=sources,
    )


def _extract_name(element: Tag) -> str:
    for selector in NAME_SELECTORS:
        for found in element.select(selector):
            text = _clean_text(found)
            if len(text) >= MIN_NAME_LENGTH:
                return text

    anchor = element.find("a")
    text = _clean_text(anchor) if anchor else ""
    if len(text) < MIN_NAME_LENGTH:
        text = _clean_text(element)[:MAX_NAME_LENGTH].strip()
    return text if len(text) >= MIN_NAME_LENGTH else ""


def _extract_link(element: Tag, base_url: str) -> str | None:
    """Resolve the watch-page URL for a listing element."""
    anchor = element.find("a", href=True)
    parent = element.find_parent("a", href=True)

    candidates = [anchor.get("href") if anchor else None]
    candidates.extend(element.get(attr) for attr in LINK_ATTRS)
    candidates.append(_onclick_target(element.get("onclick")))
    candidates.append(parent.get("href") if parent else None)

    for value in candidates:
        if _usable_href(value):
            return urljoin(base_url, value.strip())
    return None


def _onclick_target(onclick: str | None) -> str | None:
    if not onclick:
        return None
    match = ONCLICK_RE.search(onclick)
    return match.group(1) if match else None


def _usable_href(value: object) -> bool:
    if not isinstance(value, str):
        return False
    value = value.strip()
    return bool(value) and not value.startswith("#") and not value.lower().startswith("javascript:")


def _is_live(element: Tag, time_text: str) -> bool:
    classes = element.get("class") or []
    if any(LIVE_CLASS_RE.search(c) for c in classes):
        return True
    if element.select_one(LIVE_INDICATOR_SELECTOR) is not None:
        return True
    return bool(LIVE_WORD_RE.search(time_text) or LIVE_WORD_RE.search(_clean_text(element)))


def _parse_source_count(element: Tag) -> int:
    """Parse "4 sources" style hints; defaults to 1."""
    meta = element.select_one(".match-meta")
    text = _clean_text(meta) if meta else _clean_text(element)
    match = SOURCES_RE.search(text)
    return int(match.group(1)) if match else 1


def _first_text(element: Tag, selectors: tuple[str, ...]) -> str:
    for selector in selectors:
        for found in element.select(selector):
            text = _clean_text(found)
            if text:
                return text
    return ""


def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    return value.strip() if isinstance(value, str) else ""


def _clean_text(tag: Tag) -> str:
    return " ".join(tag.get_text(" ", strip=True).split())


def _fallback_anchors(soup: BeautifulSoup) -> list[Tag]:
    return [
        a for a in soup.find_all("a", href=True)
        if any(k in a["href"].lower() for k in FALLBACK_ANCHOR_KEYWORDS)
    ]
