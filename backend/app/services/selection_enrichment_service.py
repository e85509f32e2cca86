"""
backend/app/services/selection_enrichment_service.py

Purpose:
    Turn raw OCR selections into enriched selections: clean the bookmaker
    name, convert relative slip dates ("Hoy 19:00", "Mañana 06:30") to UTC,
    and ask the fixture resolver for whatever tournament/kickoff is missing.
    Unresolved fields stay blank for the user to fill in.

Dependencies:
    - zoneinfo
    - app.services.fixture_resolution_service
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from app.config import settings
from app.models.fixtures import EnrichedSelection, RawSelection, ResolutionResult
from app.services.fixture_resolution_service import FixtureResolutionService, fixture_resolution_service
from app.utils import ensure_utc, parse_utc, to_iso_utc, utcnow

logger = logging.getLogger("slipscan.enrichment")

KNOWN_BOOKMAKERS = (
    "bet365", "betfair", "pinnacle", "william hill", "betway", "betsson", "codere",
    "sportium", "marathonbet", "bwin", "1xbet", "888sport", "leovegas", "caliente",
    "playdoit", "foliatti", "daznbet", "versus", "kirolbet", "retabet", "betcris",
)

_BET_PREFIX_RE = re.compile(r"apuesta.*en\s*", re.IGNORECASE)
_NON_WORD_RE = re.compile(r"[^\w\s]")
_RELATIVE_DATE_RE = re.compile(r"(hoy|mañana|manana|today|tomorrow)\s+(\d{1,2}):(\d{2})")
_TOMORROW = {"mañana", "manana", "tomorrow"}


def clean_bookmaker(raw: Optional[str], tipster_id: Optional[str] = "") -> Optional[str]:
    """Known bookmaker name from slip text, or None.

    Text that overlaps the tipster id is treated as the tipster's watermark,
    not a bookmaker.
    """
    name = str(raw or "").strip().lower()
    tipster = str(tipster_id or "").strip().lower()
    if not name:
        return None
    if tipster and (tipster in name or name in tipster):
        return None
    cleaned = _BET_PREFIX_RE.sub("", name)
    cleaned = _NON_WORD_RE.sub("", cleaned).replace("_", "").strip()
    if not cleaned:
        return None
    if any(known in cleaned for known in KNOWN_BOOKMAKERS):
        return cleaned
    return None


def resolve_relative_date(
    text: Optional[str],
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> Optional[str]:
    """'Hoy 19:00' / 'Mañana 06:30' in the base timezone -> UTC ISO, else None."""
    if not text:
        return None
    match = _RELATIVE_DATE_RE.search(str(text).lower())
    if not match:
        return None
    rel, hh, mm = match.groups()
    hour, minute = int(hh), int(mm)
    if hour > 23 or minute > 59:
        return None

    tz = ZoneInfo(tz_name or settings.BASE_TZ)
    local_now = ensure_utc(now or utcnow()).astimezone(tz)
    day = local_now.date()
    if rel in _TOMORROW:
        day = day + timedelta(days=1)
    local_kickoff = datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)
    return to_iso_utc(local_kickoff)


def _slip_start_iso(selection: RawSelection, now: Optional[datetime]) -> Optional[str]:
    if selection.start_time_iso:
        try:
            return to_iso_utc(parse_utc(selection.start_time_iso))
        except ValueError:
            logger.debug("ignoring unparsable slip date %r", selection.start_time_iso)
    return resolve_relative_date(selection.start_time_text, now=now)


async def enrich_selection(
    selection: RawSelection,
    tipster_id: Optional[str] = "",
    resolver: Optional[FixtureResolutionService] = None,
    sport_hint: Optional[str] = None,
    now: Optional[datetime] = None,
) -> EnrichedSelection:
    """Fill tournament/kickoff: slip data first, resolver only for what is missing."""
    tournament = (selection.tournament_text or "").strip() or None
    start_iso = _slip_start_iso(selection, now)

    resolution = ResolutionResult.empty()
    if tournament is None or start_iso is None:
        resolver = resolver or fixture_resolution_service
        resolution = await resolver.resolve_fixture(selection.match_text, sport_hint)

    filled = (tournament is None and resolution.tournament is not None) or (
        start_iso is None and resolution.start_iso is not None
    )
    return EnrichedSelection(
        match=selection.match_text,
        tournament=tournament or resolution.tournament,
        start_time_utc=start_iso or resolution.start_iso,
        start_time_text=selection.start_time_text,
        market=selection.market,
        pick=selection.pick,
        odds=selection.odds,
        bookmaker=clean_bookmaker(selection.bookmaker_text, tipster_id),
        resolution_strategy=resolution.strategy if filled else None,
    )


async def enrich_selections(
    selections: Sequence[RawSelection],
    tipster_id: Optional[str] = "",
    resolver: Optional[FixtureResolutionService] = None,
    sport_hint: Optional[str] = None,
) -> list[EnrichedSelection]:
    """Enrich a slip's selections one by one (keeps upstream call volume predictable)."""
    enriched: list[EnrichedSelection] = []
    for selection in selections:
        enriched.append(
            await enrich_selection(selection, tipster_id=tipster_id, resolver=resolver, sport_hint=sport_hint)
        )
    return enriched
