"""Static server and category configuration, plus keyword classification."""

from __future__ import annotations

from typing import Mapping

from ntvsports import CategoryConfig, ServerConfig

CATALOG_PREFIX = "ntvstream_"
ALL_CATALOG_ID = f"{CATALOG_PREFIX}all"
ALL_CATALOG_NAME = "🏟️ All Sports"


def _server(id: str, name: str, base_url: str, enabled: bool, priority: int,
            description: str, logo: str | None = None) -> ServerConfig:
    return ServerConfig(id, name, base_url, enabled, priority, description, logo)


def _category(id: str, name: str, genres: list[str], icon: str,
              keywords: list[str]) -> CategoryConfig:
    return CategoryConfig(
        id=id,
        name=name,
        genres=tuple(genres),
        icon=icon,
        keywords=tuple(k.lower() for k in keywords),
    )


SERVERS: dict[str, ServerConfig] = {
    s.id: s
    for s in (
        _server("ntvstream", "NTVStream", "https://ntvstream.cx", True, 0,
                "Main NTVStream", "https://ntvstream.cx/favicon.ico"),
        _server("kobra", "NTVStream KOBRA", "https://ntvstream.cx/matches/kobra", True, 1,
                "KOBRA Server - Primary"),
        _server("titan", "NTVStream TITAN", "https://ntvstream.cx/matches/titan", True, 2,
                "TITAN Server"),
        _server("raptor", "NTVStream RAPTOR", "https://ntvstream.cx/matches/raptor", True, 3,
                "RAPTOR Server"),
        _server("phoenix", "NTVStream PHOENIX", "https://ntvstream.cx/matches/phoenix", True, 4,
                "PHOENIX Server"),
        _server("scorpion", "NTVStream SCORPION", "https://ntvstream.cx/matches/scorpion", True, 5,
                "SCORPION Server"),
        _server("viper", "NTVStream VIPER", "https://ntvstream.cx/matches/viper", True, 6,
                "VIPER Server"),
        _server("ppvland", "PPVLand", "https://ppvland.tv", False, 7,
                "PPV and live sports events"),
        _server("sportsurge", "SportSurge", "https://sportsurge.io", False, 8,
                "Sports streaming aggregator"),
        _server("crackstreams", "CrackStreams", "https://crackstreams.biz", False, 9,
                "Sports streaming alternative"),
    )
}

# Declaration order is the match precedence: a title hitting keywords of
# several categories resolves to the first one listed here.
CATEGORIES: dict[str, CategoryConfig] = {
    c.id: c
    for c in (
        _category("football", "Football / Soccer",
                  ["Football", "Soccer", "Champions League", "Premier League", "La Liga"], "⚽",
                  ["football", "soccer", "premier", "liga", "champions", "uefa", "serie",
                   "bundesliga", "championship", "fa cup", "league one", "league two"]),
        _category("basketball", "Basketball", ["Basketball", "NBA", "EuroLeague"], "🏀",
                  ["basketball", "nba", "ncaa", "euroleague", "bcl"]),
        _category("hockey", "Hockey", ["Hockey", "NHL", "Ice Hockey"], "🏒",
                  ["hockey", "nhl", "ice"]),
        _category("cricket", "Cricket", ["Cricket", "IPL", "T20"], "🏏",
                  ["cricket", "ipl", "t20", "test", "odi"]),
        _category("tennis", "Tennis", ["Tennis", "ATP", "WTA"], "🎾",
                  ["tennis", "atp", "wta", "wimbledon", "open"]),
        _category("golf", "Golf", ["Golf", "PGA"], "⛳",
                  ["golf", "pga", "masters"]),
        _category("ufc_mma", "UFC / MMA", ["UFC", "MMA", "Fighting"], "🥊",
                  ["ufc", "mma", "bellator", "fight", "martial"]),
        _category("boxing", "Boxing", ["Boxing"], "🥊",
                  ["boxing", "box"]),
        _category("wrestling", "WWE / Wrestling", ["WWE", "Wrestling", "AEW"], "🤼",
                  ["wwe", "wrestling", "aew", "raw", "smackdown"]),
        _category("nfl", "NFL", ["NFL", "American Football"], "🏈",
                  ["nfl", "american football", "super bowl"]),
        _category("baseball", "Baseball / MLB", ["MLB", "Baseball"], "⚾",
                  ["mlb", "baseball"]),
        _category("rugby", "Rugby", ["Rugby"], "🏉",
                  ["rugby", "six nations"]),
        _category("motorsport", "Motorsport / F1", ["F1", "NASCAR", "MotoGP"], "🏎️",
                  ["f1", "formula", "nascar", "motogp", "racing"]),
        _category("snooker", "Snooker", ["Snooker"], "🎱",
                  ["snooker", "pool"]),
        _category("darts", "Darts", ["Darts"], "🎯",
                  ["darts", "pdc"]),
        _category("handball", "Handball", ["Handball"], "🤾",
                  ["handball"]),
        _category("tvshows", "TV Shows", ["TV Shows", "Entertainment"], "📺",
                  ["tv shows", "show", "episode", "season"]),
        _category("other", "Other Sports", ["Sports"], "🏆",
                  ["sports", "live"]),
    )
}

FALLBACK_CATEGORY = CATEGORIES["other"]


def _normalize_category_id(value: str) -> str:
    return "_".join(value.strip().lower().replace("-", " ").split())


def match_category(name: str, raw_category: str = "") -> CategoryConfig:
    """Classify an event by keyword, falling back to "Other Sports".

    An upstream category that is exactly a category id or keyword wins
    outright; otherwise the first keyword (in declaration order) found
    anywhere in the name or category text decides.
    """
    raw = (raw_category or "").strip().lower()
    if raw:
        direct = CATEGORIES.get(_normalize_category_id(raw))
        if direct:
            return direct
        for category in CATEGORIES.values():
            if raw in category.keywords:
                return category

    search_text = f"{name} {raw_category or ''}".lower()
    for category in CATEGORIES.values():
        for keyword in category.keywords:
            if keyword in search_text:
                return category

    return FALLBACK_CATEGORY


def enabled_servers(
    user_servers: Mapping[str, bool] | None = None,
    servers: Mapping[str, ServerConfig] | None = None,
) -> list[ServerConfig]:
    """Servers to scrape, with per-user overrides winning over the static flag."""
    user_servers = user_servers or {}
    selected = [
        s for s in (servers or SERVERS).values()
        if user_servers.get(s.id, s.enabled)
    ]
    return sorted(selected, key=lambda s: (s.priority, s.id))


def category_by_id(catalog_id: str) -> CategoryConfig | None:
    return CATEGORIES.get(strip_catalog_prefix(catalog_id))


def strip_catalog_prefix(catalog_id: str) -> str:
    if catalog_id.startswith(CATALOG_PREFIX):
        return catalog_id[len(CATALOG_PREFIX):]
    return catalog_id


def catalog_definitions() -> list[dict]:
    """Host catalog entries: "All Sports" first, then one per category."""
    extra = [
        {"name": "skip", "isRequired": False},
        {"name": "search", "isRequired": False},
    ]
    catalogs = [{"type": "tv", "id": ALL_CATALOG_ID, "name": ALL_CATALOG_NAME, "extra": extra}]
    catalogs.extend(
        {"type": c.type, "id": f"{CATALOG_PREFIX}{c.id}", "name": f"{c.icon} {c.name}", "extra": extra}
        for c in CATEGORIES.values()
    )
    return catalogs
