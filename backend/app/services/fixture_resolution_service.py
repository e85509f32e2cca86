"""
backend/app/services/fixture_resolution_service.py

Purpose:
    Resolve a loosely formatted match description into the real fixture's
    tournament and kickoff time. Runs the configured strategies in fallback
    order (combined query -> cross-reference -> verified web source), validates
    the first hit and caches the outcome (including "not found") per variant set.

Dependencies:
    - app.services.resolution_strategies
    - app.services.fixture_validator
    - app.services.resolution_cache
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from app.config import settings
from app.models.fixtures import ResolutionResult
from app.providers.base import BaseSportsDataProvider
from app.providers.sofascore import SofaScoreProvider
from app.providers.web_verifier import WebVerifierProvider
from app.services.fixture_validator import validate_resolution
from app.services.name_normalizer import SideVariants, build_side_variants
from app.services.resolution_cache import InMemoryResolutionCache, ResolutionCache, build_cache_key
from app.services.resolution_strategies import (
    CombinedQueryStrategy,
    CrossReferenceStrategy,
    ResolutionStrategy,
    VerifiedSourceStrategy,
)

logger = logging.getLogger("slipscan.resolution")


def build_strategies(
    names: str | Iterable[str],
    provider: BaseSportsDataProvider,
    verifier: WebVerifierProvider,
) -> list[ResolutionStrategy]:
    """Instantiate strategies from a comma-separated (or iterable) list of stage names."""
    if isinstance(names, str):
        names = names.split(",")
    builders = {
        CombinedQueryStrategy.name: lambda: CombinedQueryStrategy(provider),
        CrossReferenceStrategy.name: lambda: CrossReferenceStrategy(provider),
        VerifiedSourceStrategy.name: lambda: VerifiedSourceStrategy(verifier),
    }
    strategies: list[ResolutionStrategy] = []
    for raw in names:
        name = str(raw).strip().lower()
        if not name:
            continue
        if name not in builders:
            raise ValueError(f"Unknown resolution strategy: {name!r}")
        strategies.append(builders[name]())
    return strategies


class FixtureResolutionService:
    def __init__(
        self,
        provider: Optional[BaseSportsDataProvider] = None,
        verifier: Optional[WebVerifierProvider] = None,
        cache: Optional[ResolutionCache] = None,
        strategies: Optional[list[ResolutionStrategy]] = None,
        deadline_seconds: Optional[float] = None,
    ):
        self._provider = provider or SofaScoreProvider()
        self._verifier = verifier or WebVerifierProvider()
        self._cache = cache if cache is not None else InMemoryResolutionCache()
        if strategies is None:
            strategies = build_strategies(settings.RESOLUTION_STRATEGIES, self._provider, self._verifier)
        self._strategies = strategies
        self._deadline = settings.RESOLUTION_DEADLINE_SECONDS if deadline_seconds is None else deadline_seconds

    @property
    def strategies(self) -> list[ResolutionStrategy]:
        return list(self._strategies)

    async def _run_strategies(self, sides: SideVariants, sport_hint: Optional[str]) -> Optional[ResolutionResult]:
        for strategy in self._strategies:
            try:
                result = await strategy.try_resolve(sides, sport_hint)
            except Exception:
                # Stage failures are isolated; later stages still run
                logger.exception("Resolution strategy %s failed for %r", strategy.name, sides.match_text)
                continue
            if result is not None and not result.is_empty:
                return result
            logger.debug("strategy %s: no match for %r", strategy.name, sides.match_text)
        return None

    async def resolve_fixture(self, match_text: str, sport_hint: Optional[str] = None) -> ResolutionResult:
        """Tournament + UTC kickoff for a match description; empty result when unresolved."""
        sides = build_side_variants(match_text)
        if sides is None:
            logger.debug("unsplittable match text %r", match_text)
            return ResolutionResult.empty()

        cache_key = build_cache_key(sides.all_variants(), sport_hint)
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("cache hit %s", cache_key)
            return cached

        try:
            found = await asyncio.wait_for(self._run_strategies(sides, sport_hint), timeout=self._deadline)
        except asyncio.TimeoutError:
            logger.warning("Fixture resolution for %r exceeded %.1fs deadline", match_text, self._deadline)
            return ResolutionResult.empty()

        result = validate_resolution(found) if found is not None else ResolutionResult.empty()
        self._cache.set(cache_key, result)
        if result.is_empty:
            logger.info("Fixture unresolved: %r", match_text)
        else:
            logger.info(
                "Fixture resolved: %r -> %s @ %s (%s)",
                match_text, result.tournament, result.start_iso, result.strategy,
            )
        return result

    async def aclose(self) -> None:
        await self._provider.aclose()
        await self._verifier.aclose()


# Singleton
fixture_resolution_service = FixtureResolutionService()


async def resolve_fixture(match_text: str, sport_hint: Optional[str] = None) -> ResolutionResult:
    return await fixture_resolution_service.resolve_fixture(match_text, sport_hint)
