"""Host add-on protocol: manifest, meta and stream payloads, routing."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any
from urllib.parse import parse_qs, unquote

from ntvsports import ScrapedStream, SportEvent, UserConfig
from ntvsports.catalog import EventCatalog
from ntvsports.events import ID_PREFIX
from ntvsports.registry import SERVERS, catalog_definitions
from ntvsports.streams import is_direct_media

logger = logging.getLogger(__name__)

ADDON_ID = "community.ntvstream.sports"
ADDON_VERSION = "1.0.0"
ADDON_NAME = "NTVStream Sports"
ADDON_DESCRIPTION = (
    "Live sports streaming addon with multiple server support. "
    "Watch Football, Cricket, UFC, Boxing, PPV events and more!"
)
ADDON_LOGO = "https://img.icons8.com/color/512/stadium.png"
ADDON_BACKGROUND = "https://images.unsplash.com/photo-1574629810360-7efbbe195018?w=1920"
ICON_BASE = "https://img.icons8.com/color"

PAGE_SIZE = 100

# [/<config>]/<resource>/<type>/<id>[/<extra>].json
ROUTE_RE = re.compile(
    r"^/(?:(?P<config>[^/]+)/)?(?P<resource>catalog|meta|stream)/(?P<type>[^/]+)/"
    r"(?P<id>[^/]+?)(?:/(?P<extra>[^/]+))?\.json$"
)
MANIFEST_RE = re.compile(r"^/(?:(?P<config>[^/]+)/)?manifest\.json$")


def build_manifest() -> dict:
    """The add-on manifest served at /manifest.json."""
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": ADDON_NAME,
        "description": ADDON_DESCRIPTION,
        "logo": ADDON_LOGO,
        "background": ADDON_BACKGROUND,
        "resources": ["catalog", "meta", "stream"],
        "types": ["tv"],
        "idPrefixes": [ID_PREFIX],
        "catalogs": catalog_definitions(),
        "behaviorHints": {"configurable": True, "configurationRequired": False},
        "config": [
            {
                "key": "servers",
                "type": "checkbox",
                "title": "Select Streaming Servers",
                "options": list(SERVERS),
                "optionNames": {s.id: f"{s.name} - {s.description}" for s in SERVERS.values()},
                "default": [s.id for s in SERVERS.values() if s.enabled],
            }
        ],
    }


def decode_user_config(token: str | None) -> UserConfig:
    """Decode the config path segment (base64 JSON, or plain JSON)."""
    if not token:
        return UserConfig()

    token = unquote(token).strip()
    candidates = []
    padded = token + "=" * (-len(token) % 4)
    for decoder in (base64.urlsafe_b64decode, base64.b64decode):
        try:
            candidates.append(decoder(padded).decode("utf-8"))
        except (binascii.Error, ValueError):
            continue
    candidates.append(token)

    for text in candidates:
        try:
            data = json.loads(text)
        except ValueError:
            continue
        if isinstance(data, dict):
            return UserConfig.from_dict(_expand_server_list(data))

    logger.debug("Ignoring undecodable config %r", token[:40])
    return UserConfig()


def _expand_server_list(data: dict) -> dict:
    """The checkbox field sends the selected ids as a list; it selects exactly those."""
    servers = data.get("servers")
    if isinstance(servers, list):
        selected = {str(s) for s in servers}
        data = {**data, "servers": {sid: sid in selected for sid in SERVERS}}
    return data


def encode_user_config(config: UserConfig) -> str:
    data: dict[str, Any] = {}
    if config.servers is not None:
        data["servers"] = dict(config.servers)
    if config.preferred_quality:
        data["preferredQuality"] = config.preferred_quality
    if config.auto_play:
        data["autoPlay"] = True
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def event_to_meta_preview(event: SportEvent) -> dict:
    category = event.matched_category
    live = "🔴 LIVE: " if event.is_live else ""
    return {
        "id": event.id,
        "type": "tv",
        "name": f"{live}{event.name}",
        "poster": f"{ICON_BASE}/512/{category.id}.png",
        "posterShape": "square",
        "description": f"{category.icon} {category.name}\n📺 {event.server_name}\n⏰ {event.time_str}",
        "genres": list(category.genres),
        "releaseInfo": event.time_str,
        "links": [{"name": event.server_name, "category": "Servers", "url": event.link}],
    }


def event_to_meta(event: SportEvent) -> dict:
    return {
        **event_to_meta_preview(event),
        "background": ADDON_BACKGROUND,
        "logo": f"{ICON_BASE}/256/{event.matched_category.id}.png",
        "runtime": "Live Now" if event.is_live else "Scheduled",
        "website": event.link,
    }


def to_host_streams(event: SportEvent, streams: list[ScrapedStream]) -> list[dict]:
    """Direct media plays in the host (with proxied headers); the rest opens externally."""
    result = []
    for i, stream in enumerate(streams, start=1):
        if is_direct_media(stream.url) and not stream.is_embed:
            entry: dict[str, Any] = {
                "url": stream.url,
                "title": f"{event.server_name} - {stream.title or f'Stream {i}'}",
                "name": stream.quality or "HD",
            }
            if stream.headers:
                entry["behaviorHints"] = {
                    "notWebReady": True,
                    "proxyHeaders": {"request": dict(stream.headers)},
                }
        else:
            entry = {
                "externalUrl": stream.url,
                "title": f"{event.server_name} - {stream.title or f'Link {i}'}",
                "name": "Web Player" if stream.is_embed else "External",
                "behaviorHints": {"notWebReady": True},
            }
        result.append(entry)
    return result


def parse_extra(extra: str | None) -> dict[str, str]:
    """Parse catalog extras like ``search=foo&skip=100``."""
    if not extra:
        return {}
    parsed = parse_qs(unquote(extra), keep_blank_values=True)
    return {k: v[0] for k, v in parsed.items() if v}


def route(path: str, catalog: EventCatalog) -> tuple[int, dict]:
    """Dispatch a GET path to the matching handler. Returns (status, payload)."""
    path = path.split("?", 1)[0]

    if path == "/health":
        return 200, {"status": "ok", "version": ADDON_VERSION}

    if MANIFEST_RE.match(path):
        return 200, build_manifest()

    match = ROUTE_RE.match(path)
    if not match:
        return 404, {"error": "not_found"}

    config = decode_user_config(match.group("config"))
    resource = match.group("resource")
    item_id = unquote(match.group("id"))

    if resource == "catalog":
        return 200, handle_catalog(catalog, item_id, parse_extra(match.group("extra")), config)
    if resource == "meta":
        return 200, handle_meta(catalog, item_id, config)
    return 200, handle_stream(catalog, item_id, config)


def handle_catalog(catalog: EventCatalog, catalog_id: str, extra: dict[str, str],
                   config: UserConfig) -> dict:
    try:
        skip = max(0, int(extra.get("skip") or 0))
    except ValueError:
        skip = 0

    try:
        if extra.get("search"):
            events = catalog.search_events(extra["search"], config)
        else:
            events = catalog.get_events_by_category(catalog_id, config)
    except Exception:
        logger.exception("Catalog error for %s", catalog_id)
        return {"metas": []}

    metas = [event_to_meta_preview(e) for e in events[skip:skip + PAGE_SIZE]]
    logger.info("Catalog %s: returning %d items", catalog_id, len(metas))
    return {"metas": metas}


def handle_meta(catalog: EventCatalog, event_id: str, config: UserConfig) -> dict:
    try:
        event = catalog.get_event_by_id(event_id, config)
    except Exception:
        logger.exception("Meta error for %s", event_id)
        return {"meta": None}

    if event is None:
        logger.info("Event not found: %s", event_id)
        return {"meta": None}
    return {"meta": event_to_meta(event)}


def handle_stream(catalog: EventCatalog, event_id: str, config: UserConfig) -> dict:
    try:
        event = catalog.get_event_by_id(event_id, config)
        if event is None:
            logger.info("Event not found: %s", event_id)
            return {"streams": []}

        server = catalog.servers.get(event.server)
        if server is None:
            logger.info("Server not found: %s", event.server)
            return {"streams": []}

        scraped = catalog.fetch_stream_urls(event.link, server)
    except Exception:
        logger.exception("Stream error for %s", event_id)
        return {"streams": []}

    streams = to_host_streams(event, scraped)
    logger.info("Found %d streams for: %s", len(streams), event.name)
    return {"streams": streams}
