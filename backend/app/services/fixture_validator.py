"""
backend/app/services/fixture_validator.py

Purpose:
    Plausibility gate for resolved fixtures. Nulls kickoff times outside the
    [now - grace, now + horizon] window and tournament names that only name a
    top-level circuit ("ATP Tour", "League") instead of the actual event.
    Pure: no I/O, same input -> same output.

Dependencies:
    - app.config
    - app.utils
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from app.config import settings
from app.models.fixtures import ResolutionResult
from app.services.name_normalizer import normalize_plain
from app.utils import ensure_utc, parse_utc, to_iso_utc, utcnow

_GENERIC_TOURNAMENT_RE = re.compile(
    r"\b(?:atp|wta|itf)(?: world)? tour\b"
    r"|^(?:atp|wta|itf|tennis|league|liga|football|soccer|basketball|tour|men|women)"
    r"(?: (?:singles|doubles|men|women))?$"
)

_SPECIFIC_MARKER_RE = re.compile(
    r"masters|grand slam|\bopen\b|\bfinals?\b|\bchampionships?\b|\bcup\b|challenger|\b(?:125|250|500|1000)\b"
    r"|wimbledon|roland garros|us open|australian open|davis|billie jean king|united cup"
    r"|premier league|champions league|europa league|conference league|la ?liga|serie a"
    r"|bundesliga|ligue 1|eredivisie|primeira liga|super lig|mls|nba|euroleague|acb"
)


def is_generic_tournament(name: str | None) -> bool:
    """True for circuit-level names with no specific competition marker."""
    plain = normalize_plain(name or "")
    if not plain:
        return False
    if not _GENERIC_TOURNAMENT_RE.search(plain):
        return False
    return not _SPECIFIC_MARKER_RE.search(plain)


def is_plausible_kickoff(
    start: datetime,
    now: datetime,
    grace_minutes: int,
    horizon_days: int,
) -> bool:
    start = ensure_utc(start)
    now = ensure_utc(now)
    earliest = now - timedelta(minutes=grace_minutes)
    latest = now + timedelta(days=horizon_days)
    return earliest <= start <= latest


def validate_resolution(
    result: ResolutionResult,
    now: datetime | None = None,
    grace_minutes: int | None = None,
    horizon_days: int | None = None,
) -> ResolutionResult:
    """Return a copy of result with implausible fields nulled out."""
    now = now or utcnow()
    grace = settings.FIXTURE_PAST_GRACE_MINUTES if grace_minutes is None else grace_minutes
    horizon = settings.FIXTURE_HORIZON_DAYS if horizon_days is None else horizon_days

    start_iso = result.start_iso
    tz = result.tz
    if start_iso is not None:
        try:
            start = parse_utc(start_iso)
        except ValueError:
            start = None
        if start is None or not is_plausible_kickoff(start, now, grace, horizon):
            start_iso = None
            tz = None
        else:
            start_iso = to_iso_utc(start)

    tournament = (result.tournament or "").strip() or None
    if tournament is not None and is_generic_tournament(tournament):
        tournament = None

    return result.model_copy(update={"tournament": tournament, "start_iso": start_iso, "tz": tz})
