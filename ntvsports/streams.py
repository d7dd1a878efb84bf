"""Stream URL discovery on event watch pages."""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Callable
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from ntvsports import ScrapedStream, ServerConfig
from ntvsports.fetcher import USER_AGENT, fetch_html

logger = logging.getLogger(__name__)

Fetch = Callable[..., str]

EMBED_KEYWORDS = ("embed", "player", "stream")
IFRAME_SRC_ATTRS = ("src", "data-src", "data-lazy-src")
QUALITY_ATTRS = ("label", "data-quality", "res")
SOURCE_SELECTOR = "select option, [data-source], [data-url], [data-stream]"
SOURCE_VALUE_ATTRS = ("value", "data-source", "data-url", "data-stream")
PREVIEW_MARKERS = ("poster", "thumb")

DIRECT_MEDIA_RE = re.compile(r"\.(m3u8|mpd|mp4)(\?|$)", re.IGNORECASE)


def _media_pattern(ext: str) -> re.Pattern[str]:
    return re.compile(
        rf"https?://[^\s\"'<>\\]+?\.{ext}(?:\?[^\s\"'<>\\]*)?(?=[\s\"'<>\\]|$)",
        re.IGNORECASE,
    )


# (pattern, title, skip preview images)
MEDIA_PATTERNS = (
    (_media_pattern("m3u8"), "HLS Stream", False),
    (_media_pattern("mpd"), "DASH Stream", False),
    (_media_pattern("mp4"), "MP4 Video", True),
)


def is_direct_media(url: str) -> bool:
    return bool(DIRECT_MEDIA_RE.search(url))


def extract_streams(html: str, page_url: str) -> list[ScrapedStream]:
    """Find every stream reference on a page, in discovery order, unique by URL."""
    soup = BeautifulSoup(html, "html.parser")
    return dedupe_streams(
        _iframe_streams(soup, page_url)
        + _direct_media_streams(soup, html, page_url)
        + _source_selector_streams(soup, page_url)
    )


def scan_direct_media(html: str, page_url: str) -> list[ScrapedStream]:
    """Only the direct-media passes (video tags and media URL patterns)."""
    soup = BeautifulSoup(html, "html.parser")
    return dedupe_streams(_direct_media_streams(soup, html, page_url))


def dedupe_streams(streams: list[ScrapedStream]) -> list[ScrapedStream]:
    seen: set[str] = set()
    unique: list[ScrapedStream] = []
    for stream in streams:
        if stream.url in seen:
            continue
        seen.add(stream.url)
        unique.append(stream)
    return unique


def scrape_streams(
    event_link: str,
    server: ServerConfig,
    fetch: Fetch = fetch_html,
) -> list[ScrapedStream]:
    """Collect playable streams for an event's watch page.

    Embedded players found on the watch page are fetched once more (one hop,
    never deeper) to pick up the media URLs they wrap. The result always
    holds at least one entry: when nothing directly playable turns up, the
    watch page itself is offered for opening in a browser.
    """
    server_headers = playback_headers(server.base_url)

    try:
        html = fetch(event_link, referer=server.base_url)
    except requests.RequestException as e:
        logger.warning("Error fetching stream page %s: %s", event_link, e)
        return [watch_in_browser(event_link, server, server_headers)]

    found = extract_streams(html, event_link)
    streams = [_with_headers(s, server_headers) for s in found]
    seen = {s.url for s in streams}

    for embed in (s for s in found if s.is_embed):
        try:
            embed_html = fetch(embed.url, referer=event_link)
        except requests.RequestException as e:
            logger.debug("Could not follow embed %s: %s", embed.url, e)
            continue

        for child in scan_direct_media(embed_html, embed.url):
            if child.url in seen:
                continue
            seen.add(child.url)
            streams.append(_with_headers(child, server_headers))

    if not any(not s.is_embed for s in streams) and event_link not in seen:
        streams.append(watch_in_browser(event_link, server, server_headers))

    logger.info("Found %d streams for %s", len(streams), event_link)
    return streams


def playback_headers(referer: str) -> dict[str, str]:
    return {"Referer": referer, "User-Agent": USER_AGENT}


def watch_in_browser(event_link: str, server: ServerConfig, headers: dict[str, str]) -> ScrapedStream:
    return ScrapedStream(
        url=event_link,
        title=f"{server.name} - Watch in Browser",
        is_embed=True,
        headers=dict(headers),
    )


def _with_headers(stream: ScrapedStream, headers: dict[str, str]) -> ScrapedStream:
    if stream.headers and "Referer" in stream.headers:
        return stream
    return dataclasses.replace(stream, headers={**headers, **(stream.headers or {})})


def _iframe_streams(soup: BeautifulSoup, page_url: str) -> list[ScrapedStream]:
    streams: list[ScrapedStream] = []
    for iframe in soup.find_all("iframe"):
        src = next(
            (iframe.get(a) for a in IFRAME_SRC_ATTRS if _non_empty(iframe.get(a))),
            None,
        )
        if not src:
            continue
        url = _absolutize(src, page_url)
        if any(k in url.lower() for k in EMBED_KEYWORDS):
            streams.append(ScrapedStream(url=url, title="Embedded Player", is_embed=True))
    return streams


def _direct_media_streams(soup: BeautifulSoup, html: str, page_url: str) -> list[ScrapedStream]:
    streams: list[ScrapedStream] = []

    for el in soup.select("video[src], source[src]"):
        src = el.get("src")
        if not _non_empty(src):
            continue
        quality = next((el.get(a) for a in QUALITY_ATTRS if _non_empty(el.get(a))), None)
        streams.append(ScrapedStream(
            url=_absolutize(src, page_url),
            title="Direct Video",
            quality=quality,
        ))

    # Player configs are often JSON with escaped slashes
    text = html.replace("\\/", "/")
    for pattern, title, skip_previews in MEDIA_PATTERNS:
        for match in pattern.finditer(text):
            url = match.group(0)
            if skip_previews and any(m in url.lower() for m in PREVIEW_MARKERS):
                continue
            streams.append(ScrapedStream(url=url, title=title))

    return streams


def _source_selector_streams(soup: BeautifulSoup, page_url: str) -> list[ScrapedStream]:
    streams: list[ScrapedStream] = []
    for i, el in enumerate(soup.select(SOURCE_SELECTOR)):
        value = next(
            (el.get(a).strip() for a in SOURCE_VALUE_ATTRS if _looks_absolute(el.get(a))),
            None,
        )
        if not value:
            continue
        url = _absolutize(value, page_url)
        label = " ".join(el.get_text(" ", strip=True).split())
        streams.append(ScrapedStream(
            url=url,
            title=label or f"Source {i + 1}",
            is_embed=not is_direct_media(url),
        ))
    return streams


def _absolutize(src: str, page_url: str) -> str:
    src = src.strip()
    if src.startswith("//"):
        return f"https:{src}"
    return urljoin(page_url, src)


def _looks_absolute(value: object) -> bool:
    if not isinstance(value, str):
        return False
    value = value.strip().lower()
    return value.startswith(("http://", "https://", "//"))


def _non_empty(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())
