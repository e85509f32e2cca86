"""
backend/app/providers/sofascore.py

Purpose:
    SofaScore public API adapter: entity search (players/teams grouped by
    sport) and per-entity fixture lists (next/last events), normalized into
    EntityCandidate and FixtureEvent models.

Dependencies:
    - app.providers.http_client
    - app.models.fixtures
"""

import logging
from typing import Any, Optional

import httpx

from app.config import settings
from app.models.fixtures import EntityCandidate, EntityKind, FixtureEvent
from app.providers.base import BaseSportsDataProvider
from app.providers.http_client import ProviderResponseError, ResilientClient

logger = logging.getLogger("slipscan.sofascore")

PROVIDER_NAME = "sofascore"

_SECTION_KEYS = (("players", EntityKind.player), ("teams", EntityKind.team))


def _section_entries(section: Any, key: str, kind: EntityKind) -> list[EntityCandidate]:
    if not isinstance(section, dict):
        return []
    entries = section.get(key)
    if not isinstance(entries, list):
        return []
    out: list[EntityCandidate] = []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("id") is None:
            continue
        out.append(EntityCandidate(kind=kind, id=str(entry["id"]), display_name=str(entry.get("name") or "")))
    return out


class SofaScoreProvider(BaseSportsDataProvider):
    """SofaScore: keyless multi-sport search and schedules."""

    def __init__(self, base_url: Optional[str] = None):
        self._client = ResilientClient(PROVIDER_NAME)
        self._base_url = (base_url or settings.SOFASCORE_BASE_URL).rstrip("/")

    async def search(self, query: str, sport_hint: Optional[str] = None) -> list[EntityCandidate]:
        """Top candidates for a query, preferring the hinted sport's section."""
        max_candidates = settings.SEARCH_MAX_CANDIDATES
        sport = (sport_hint or settings.DEFAULT_SPORT or "").strip().lower()

        payload = await self._client.get_json(f"{self._base_url}/search/all", params={"q": query})
        if not isinstance(payload, dict):
            raise ProviderResponseError(PROVIDER_NAME, f"search payload for {query!r} is not an object")

        preferred: list[EntityCandidate] = []
        if sport:
            for key, kind in _SECTION_KEYS:
                preferred.extend(_section_entries(payload.get(sport), key, kind))
        if preferred:
            return preferred[:max_candidates]

        # Sport section missing or empty: scan every section generically
        per_kind = settings.SEARCH_GENERIC_PER_KIND
        generic: list[EntityCandidate] = []
        for section in payload.values():
            for key, kind in _SECTION_KEYS:
                generic.extend(_section_entries(section, key, kind)[:per_kind])
        logger.debug("search %r: no %s section, %d generic candidates", query, sport or "sport", len(generic))
        return generic[:max_candidates]

    async def _fetch_events(self, entity_id: str, kind: EntityKind, direction: str) -> list[FixtureEvent]:
        url = f"{self._base_url}/{kind.value}/{entity_id}/events/{direction}/0"
        try:
            payload = await self._client.get_json(url)
        except ProviderResponseError as e:
            # SofaScore answers 404 for entities without events in that direction
            level = logging.DEBUG if e.status_code == 404 else logging.WARNING
            logger.log(level, "SofaScore %s events for %s %s unavailable: %s", direction, kind.value, entity_id, e)
            return []
        except httpx.HTTPError as e:
            logger.warning("SofaScore %s events for %s %s failed: %s", direction, kind.value, entity_id, e)
            return []

        events = payload.get("events") if isinstance(payload, dict) else None
        if not isinstance(events, list):
            return []
        return [FixtureEvent.from_payload(ev) for ev in events if isinstance(ev, dict)]

    async def upcoming_fixtures(self, entity_id: str, kind: EntityKind) -> list[FixtureEvent]:
        return await self._fetch_events(entity_id, kind, "next")

    async def recent_fixtures(self, entity_id: str, kind: EntityKind) -> list[FixtureEvent]:
        return await self._fetch_events(entity_id, kind, "last")

    async def aclose(self) -> None:
        await self._client.aclose()
