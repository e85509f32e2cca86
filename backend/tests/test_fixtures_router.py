"""
backend/tests/test_fixtures_router.py

Purpose:
    Contract tests for /api/fixtures/resolve and /api/selections/enrich:
    null resolutions are normal 200 payloads, blank input is a 400.
"""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.models.fixtures import RawSelection, ResolutionResult
from app.routers import fixtures as fixtures_router


class _FakeResolver:
    def __init__(self, result: ResolutionResult):
        self.result = result
        self.calls: list[tuple[str, str | None]] = []

    async def resolve_fixture(self, match_text, sport_hint=None):
        self.calls.append((match_text, sport_hint))
        return self.result


@pytest.mark.asyncio
async def test_resolve_endpoint_returns_resolution(monkeypatch):
    resolver = _FakeResolver(ResolutionResult(tournament="Paris Masters", start_iso="2025-10-30T13:20:00Z"))
    monkeypatch.setattr(fixtures_router, "fixture_resolution_service", resolver)

    result = await fixtures_router.resolve_fixture(match="J. Sinner vs F. Cerúndolo", sport="tennis")

    assert result.tournament == "Paris Masters"
    assert resolver.calls == [("J. Sinner vs F. Cerúndolo", "tennis")]


@pytest.mark.asyncio
async def test_resolve_endpoint_unresolved_is_not_an_error(monkeypatch):
    monkeypatch.setattr(fixtures_router, "fixture_resolution_service", _FakeResolver(ResolutionResult.empty()))

    result = await fixtures_router.resolve_fixture(match="Equipo Fantasma FC vs Atlético Inexistente", sport=None)

    assert result.tournament is None
    assert result.start_iso is None


@pytest.mark.asyncio
async def test_resolve_endpoint_rejects_blank_match(monkeypatch):
    resolver = _FakeResolver(ResolutionResult.empty())
    monkeypatch.setattr(fixtures_router, "fixture_resolution_service", resolver)

    with pytest.raises(HTTPException) as excinfo:
        await fixtures_router.resolve_fixture(match="   ", sport=None)

    assert excinfo.value.status_code == 400
    assert resolver.calls == []


@pytest.mark.asyncio
async def test_enrich_endpoint_uses_shared_resolver(monkeypatch):
    resolver = _FakeResolver(ResolutionResult(tournament="Paris Masters", start_iso="2025-10-30T13:20:00Z"))
    monkeypatch.setattr(fixtures_router, "fixture_resolution_service", resolver)
    body = fixtures_router.EnrichSelectionsRequest(
        tipster_id="tipsterpro",
        sport="tennis",
        selections=[
            RawSelection(
                match_text="J. Sinner vs F. Cerúndolo",
                market="Match winner",
                pick="Sinner",
                odds=1.25,
                bookmaker_text="bet365",
            )
        ],
    )

    enriched = await fixtures_router.enrich_parsed_selections(body)

    assert len(enriched) == 1
    assert enriched[0].tournament == "Paris Masters"
    assert enriched[0].bookmaker == "bet365"
    assert resolver.calls == [("J. Sinner vs F. Cerúndolo", "tennis")]
