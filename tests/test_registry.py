"""Tests for category classification and server selection."""

from __future__ import annotations

from ntvsports.registry import (
    ALL_CATALOG_ID,
    CATALOG_PREFIX,
    CATEGORIES,
    FALLBACK_CATEGORY,
    SERVERS,
    catalog_definitions,
    category_by_id,
    enabled_servers,
    match_category,
)


class TestMatchCategory:
    def test_raw_category_id_is_fast_path(self) -> None:
        # "Open" would hit tennis by keyword, but the upstream category wins
        assert match_category("US Open Cup Final", "football").id == "football"

    def test_raw_category_normalizes_spaces_and_hyphens(self) -> None:
        assert match_category("Main Card", "UFC-MMA").id == "ufc_mma"
        assert match_category("Main Card", " ufc mma ").id == "ufc_mma"

    def test_raw_category_exact_keyword(self) -> None:
        assert match_category("Lakers vs Celtics", "NBA").id == "basketball"

    def test_keyword_in_name(self) -> None:
        assert match_category("Six Nations: England v Wales").id == "rugby"

    def test_keyword_match_is_case_insensitive(self) -> None:
        assert match_category("WWE RAW Live").id == "wrestling"

    def test_declaration_order_breaks_ties(self) -> None:
        # "nfl" (declared later) loses to "football" (declared first)
        assert match_category("NFL American Football Sunday").id == "football"
        # "ncaa" belongs to basketball, so college football without the
        # word "football" still lands in basketball
        assert match_category("NCAA Tournament").id == "basketball"
        assert match_category("NCAA Football Bowl").id == "football"

    def test_raw_category_text_is_searched(self) -> None:
        assert match_category("Team A vs Team B", "Serie A Round 12").id == "football"

    def test_fallback_category(self) -> None:
        assert match_category("Chess Olympiad", "") is FALLBACK_CATEGORY
        assert FALLBACK_CATEGORY.id == "other"

    def test_deterministic(self) -> None:
        results = {match_category("Real Madrid vs Barcelona", "La Liga").id for _ in range(5)}
        assert results == {"football"}


class TestServers:
    def test_defaults_use_static_flag_in_priority_order(self) -> None:
        servers = enabled_servers()
        assert [s.id for s in servers][:3] == ["ntvstream", "kobra", "titan"]
        assert all(s.enabled for s in servers)
        assert "ppvland" not in {s.id for s in servers}

    def test_user_override_wins(self) -> None:
        servers = enabled_servers({"kobra": False, "ppvland": True})
        ids = [s.id for s in servers]
        assert "kobra" not in ids
        assert "ppvland" in ids

    def test_priorities_are_sorted(self) -> None:
        priorities = [s.priority for s in enabled_servers({sid: True for sid in SERVERS})]
        assert priorities == sorted(priorities)


class TestCatalogDefinitions:
    def test_all_sports_then_one_catalog_per_category(self) -> None:
        defs = catalog_definitions()
        assert len(defs) == len(CATEGORIES) + 1
        assert defs[0]["id"] == ALL_CATALOG_ID
        assert defs[1]["id"] == f"{CATALOG_PREFIX}football"
        assert defs[1]["name"].endswith("Football / Soccer")
        assert all({e["name"] for e in d["extra"]} == {"skip", "search"} for d in defs)

    def test_category_by_id_strips_prefix(self) -> None:
        assert category_by_id("ntvstream_cricket") is CATEGORIES["cricket"]
        assert category_by_id("cricket") is CATEGORIES["cricket"]
        assert category_by_id("ntvstream_curling") is None
