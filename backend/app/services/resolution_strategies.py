"""
backend/app/services/resolution_strategies.py

Purpose:
    Pluggable fixture resolution stages. Each stage implements
    try_resolve(sides, sport_hint) and returns a ResolutionResult or None.
    Stages catch their own upstream failures; the orchestrator composes them
    in a fixed fallback order.

Dependencies:
    - app.providers.base
    - app.providers.web_verifier
    - app.services.fixture_matcher
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import httpx

from app.config import settings
from app.models.fixtures import EntityCandidate, FixtureEvent, ResolutionResult
from app.providers.base import BaseSportsDataProvider
from app.providers.http_client import ProviderResponseError
from app.providers.web_verifier import WebVerifierProvider
from app.services.fixture_matcher import (
    find_fixture_for_sides,
    intersect_fixture_lists,
    result_from_fixtures,
)
from app.services.name_normalizer import SideVariants

logger = logging.getLogger("slipscan.resolution")

# Failures a single upstream call may raise; anything else is a bug and propagates.
UPSTREAM_ERRORS = (ProviderResponseError, httpx.HTTPError)


class ResolutionStrategy(ABC):
    name: str = "strategy"

    @abstractmethod
    async def try_resolve(self, sides: SideVariants, sport_hint: Optional[str] = None) -> Optional[ResolutionResult]:
        ...


async def fixtures_for_candidate(provider: BaseSportsDataProvider, candidate: EntityCandidate) -> list[FixtureEvent]:
    """Upcoming fixtures, falling back to recent ones for matches already under way."""
    events = await provider.upcoming_fixtures(candidate.id, candidate.kind)
    if not events and settings.INCLUDE_RECENT_FIXTURES:
        events = await provider.recent_fixtures(candidate.id, candidate.kind)
    return events


class CombinedQueryStrategy(ResolutionStrategy):
    """Search both names in one query and scan the hits' fixtures for a two-sided match."""

    name = "combined"

    def __init__(self, provider: BaseSportsDataProvider, query_limit: int | None = None, candidate_limit: int | None = None):
        self._provider = provider
        self._query_limit = settings.COMBINED_QUERY_LIMIT if query_limit is None else query_limit
        self._candidate_limit = settings.COMBINED_CANDIDATE_LIMIT if candidate_limit is None else candidate_limit

    def combined_queries(self, sides: SideVariants) -> list[str]:
        queries = [f"{left} {right}" for left in sides.left for right in sides.right]
        return queries[: self._query_limit]

    async def try_resolve(self, sides: SideVariants, sport_hint: Optional[str] = None) -> Optional[ResolutionResult]:
        # Sequential: first hit wins
        for query in self.combined_queries(sides):
            try:
                candidates = await self._provider.search(query, sport_hint)
                for candidate in candidates[: self._candidate_limit]:
                    events = await fixtures_for_candidate(self._provider, candidate)
                    event = find_fixture_for_sides(events, sides.left, sides.right)
                    if event is not None:
                        result = result_from_fixtures(event, strategy=self.name)
                        logger.debug("combined match %r -> %s @ %s", query, result.tournament, result.start_iso)
                        return result
            except UPSTREAM_ERRORS as e:
                logger.debug("combined query %r failed: %s", query, e)
        return None


class CrossReferenceStrategy(ResolutionStrategy):
    """Search each side on its own and intersect the two fixture lists by signature."""

    name = "cross_reference"

    def __init__(self, provider: BaseSportsDataProvider, candidate_limit: int | None = None):
        self._provider = provider
        self._candidate_limit = (
            settings.CROSS_REFERENCE_CANDIDATE_LIMIT if candidate_limit is None else candidate_limit
        )

    async def first_candidates(self, variants: Sequence[str], sport_hint: Optional[str]) -> list[EntityCandidate]:
        """Candidates of the first variant that yields any; later variants are not merged in."""
        for variant in variants:
            try:
                candidates = await self._provider.search(variant, sport_hint)
            except UPSTREAM_ERRORS as e:
                logger.debug("cross-reference search %r failed: %s", variant, e)
                continue
            if candidates:
                return list(candidates[: self._candidate_limit])
        return []

    async def _gather_fixtures(self, candidates: Sequence[EntityCandidate]) -> list[list[FixtureEvent]]:
        return await asyncio.gather(
            *(fixtures_for_candidate(self._provider, c) for c in candidates),
            return_exceptions=True,
        )

    @staticmethod
    def _flatten(outcomes: Sequence[object]) -> list[FixtureEvent]:
        events: list[FixtureEvent] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.debug("cross-reference fixture lookup failed: %s", outcome)
                continue
            events.extend(outcome)
        return events

    async def try_resolve(self, sides: SideVariants, sport_hint: Optional[str] = None) -> Optional[ResolutionResult]:
        left_candidates = await self.first_candidates(sides.left, sport_hint)
        right_candidates = await self.first_candidates(sides.right, sport_hint)
        if not left_candidates or not right_candidates:
            logger.debug("cross-reference: no candidates left=%s right=%s", sides.left, sides.right)
            return None

        # All lookups in flight at once; failed branches are dropped, siblings keep running
        left_outcomes, right_outcomes = await asyncio.gather(
            self._gather_fixtures(left_candidates),
            self._gather_fixtures(right_candidates),
        )
        left_events = self._flatten(left_outcomes)
        right_events = self._flatten(right_outcomes)

        hit = intersect_fixture_lists(left_events, right_events, sides.left, sides.right)
        if hit is None:
            return None
        event, twin = hit
        result = result_from_fixtures(event, twin, strategy=self.name)
        logger.debug("cross-reference match -> %s @ %s", result.tournament, result.start_iso)
        return result


class VerifiedSourceStrategy(ResolutionStrategy):
    """Ask the allow-listed web verifier; anything unverifiable is "not found"."""

    name = "verified"

    def __init__(self, verifier: WebVerifierProvider):
        self._verifier = verifier

    async def try_resolve(self, sides: SideVariants, sport_hint: Optional[str] = None) -> Optional[ResolutionResult]:
        if not self._verifier.enabled:
            return None
        match_text = sides.match_text or f"{sides.left[0]} vs {sides.right[0]}"
        return await self._verifier.verify(match_text, sport_hint)
