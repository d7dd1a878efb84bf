"""Shared data models for the NTVStream Sports addon."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class ServerConfig:
    """An upstream listing endpoint."""

    id: str
    name: str
    base_url: str
    enabled: bool
    priority: int
    description: str
    logo: str | None = None


@dataclass(frozen=True)
class CategoryConfig:
    """A sport category with the keywords used to classify events."""

    id: str
    name: str
    genres: tuple[str, ...]
    icon: str
    keywords: tuple[str, ...]
    type: str = "tv"


@dataclass(frozen=True)
class SportEvent:
    """A single live or scheduled broadcast scraped from one server."""

    id: str
    name: str
    link: str
    time_str: str
    timestamp: int
    is_live: bool
    server: str
    server_name: str
    category: str
    matched_category: CategoryConfig
    sources: int = 1


@dataclass(frozen=True)
class ScrapedStream:
    """A playable or openable reference found on a watch page."""

    url: str
    title: str
    quality: str | None = None
    is_embed: bool = False
    headers: Mapping[str, str] | None = None


@dataclass(frozen=True)
class UserConfig:
    """Per-request settings decoded from the host's install URL."""

    servers: Mapping[str, bool] | None = None
    preferred_quality: str | None = None
    auto_play: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "UserConfig":
        """Build a config from the decoded JSON object, ignoring unknown keys."""
        if not isinstance(data, Mapping):
            return cls()

        servers = data.get("servers")
        if isinstance(servers, Mapping):
            servers = {str(k): bool(v) for k, v in servers.items()}
        else:
            servers = None

        quality = data.get("preferredQuality")
        return cls(
            servers=servers,
            preferred_quality=str(quality) if quality else None,
            auto_play=bool(data.get("autoPlay", False)),
        )
