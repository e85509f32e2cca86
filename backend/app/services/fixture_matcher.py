"""
backend/app/services/fixture_matcher.py

Purpose:
    Pure matching rules that decide whether a FixtureEvent is the fixture a
    slip describes. A fixture only counts when its home and away fields are
    distinct and each one carries a variant of a different slip side.

Dependencies:
    - app.utils.name_matching
    - app.services.name_normalizer
"""

from __future__ import annotations

from typing import Iterable, Sequence

from app.models.fixtures import FixtureEvent, ResolutionResult
from app.services.name_normalizer import normalize_plain
from app.utils.name_matching import contains_any


def fixture_signature(event: FixtureEvent) -> str:
    """Order-independent key from the normalized participant names."""
    home = normalize_plain(event.home_name)
    away = normalize_plain(event.away_name)
    first, second = sorted((home, away))
    return f"{first} vs {second}"


def fixture_matches_both_sides(event: FixtureEvent, left: Sequence[str], right: Sequence[str]) -> bool:
    """
    True when one participant field matches the left side and the other the right side.

    Variants present on both sides ("kim" in "Ann/Kim vs Reynolds/Kim") say
    nothing about which side a field belongs to, so only side-exclusive
    variants count. A side with no exclusive variant never matches.
    """
    home = normalize_plain(event.home_name)
    away = normalize_plain(event.away_name)
    if not home or not away or home == away:
        return False

    left_keys = {normalize_plain(v) for v in left}
    right_keys = {normalize_plain(v) for v in right}
    left_only = [v for v in left if normalize_plain(v) not in right_keys]
    right_only = [v for v in right if normalize_plain(v) not in left_keys]
    if not left_only or not right_only:
        return False

    straight = contains_any(home, left_only) and contains_any(away, right_only)
    crossed = contains_any(home, right_only) and contains_any(away, left_only)
    return straight or crossed


def find_fixture_for_sides(
    events: Iterable[FixtureEvent],
    left: Sequence[str],
    right: Sequence[str],
) -> FixtureEvent | None:
    """First fixture satisfying both sides, in encounter order."""
    for event in events:
        if fixture_matches_both_sides(event, left, right):
            return event
    return None


def intersect_fixture_lists(
    left_events: Sequence[FixtureEvent],
    right_events: Sequence[FixtureEvent],
    left: Sequence[str],
    right: Sequence[str],
) -> tuple[FixtureEvent, FixtureEvent] | None:
    """
    First fixture present in both independently fetched lists.

    Lists are joined by signature (no shared fixture id is assumed). The
    colliding fixture must still satisfy both sides, so two wrong entities
    that happen to share a fixture are not reported.
    """
    right_index: dict[str, FixtureEvent] = {}
    for event in right_events:
        right_index.setdefault(fixture_signature(event), event)

    for event in left_events:
        twin = right_index.get(fixture_signature(event))
        if twin is None:
            continue
        if fixture_matches_both_sides(event, left, right):
            return event, twin
    return None


def result_from_fixtures(
    event: FixtureEvent,
    twin: FixtureEvent | None = None,
    *,
    strategy: str,
    source: str = "sofascore",
) -> ResolutionResult:
    """Tournament and kickoff from the fixture, filling gaps from its twin copy."""
    copies = [event] if twin is None else [event, twin]
    tournament = next((c.tournament_name for c in copies if c.tournament_name), None)
    if tournament is None:
        tournament = next((c.season_name for c in copies if c.season_name), None)
    start_iso = next((c.start_iso for c in copies if c.start_iso), None)
    return ResolutionResult(
        tournament=tournament,
        start_iso=start_iso,
        tz="UTC" if start_iso else None,
        sources=[source],
        strategy=strategy,
    )
