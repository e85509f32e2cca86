"""
backend/tests/test_sofascore_provider.py

Purpose:
    Validate SofaScore search candidate extraction (sport section preference,
    generic fallback caps) and fixture lookups that degrade to [] on upstream
    failure.
"""

from __future__ import annotations

import httpx
import pytest

from app.models.fixtures import EntityKind
from app.providers.http_client import ProviderResponseError
from app.providers.sofascore import SofaScoreProvider


class _FakeJsonClient:
    def __init__(self, outcomes: list) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[dict] = []

    async def get_json(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _players(*ids: int) -> list[dict]:
    return [{"id": i, "name": f"Player {i}"} for i in ids]


@pytest.mark.asyncio
async def test_search_prefers_sport_section(monkeypatch):
    provider = SofaScoreProvider(base_url="https://api.example/api/v1")
    fake = _FakeJsonClient(
        [
            {
                "football": {"teams": [{"id": 99, "name": "Sinner FC"}]},
                "tennis": {"players": _players(1, 2, 3, 4, 5, 6, 7)},
            }
        ]
    )
    monkeypatch.setattr(provider, "_client", fake)

    candidates = await provider.search("sinner", "tennis")

    assert [c.id for c in candidates] == ["1", "2", "3", "4", "5"]
    assert all(c.kind == EntityKind.player for c in candidates)
    assert candidates[0].display_name == "Player 1"
    assert fake.calls[0]["url"] == "https://api.example/api/v1/search/all"
    assert fake.calls[0]["params"] == {"q": "sinner"}


@pytest.mark.asyncio
async def test_search_falls_back_to_generic_scan_with_per_kind_cap(monkeypatch):
    provider = SofaScoreProvider(base_url="https://api.example/api/v1")
    payload = {
        "tennis": {"players": []},
        "football": {
            "players": _players(10, 11, 12, 13),
            "teams": [{"id": 20, "name": "Team A"}, {"id": 21, "name": "Team B"}],
        },
        "meta": "ignored",
    }
    monkeypatch.setattr(provider, "_client", _FakeJsonClient([payload]))

    candidates = await provider.search("anything", "tennis")

    assert [(c.kind.value, c.id) for c in candidates] == [
        ("player", "10"),
        ("player", "11"),
        ("player", "12"),
        ("team", "20"),
        ("team", "21"),
    ]


@pytest.mark.asyncio
async def test_search_skips_entries_without_id(monkeypatch):
    provider = SofaScoreProvider()
    payload = {"tennis": {"players": [{"name": "No Id"}, {"id": 7, "name": "Has Id"}]}}
    monkeypatch.setattr(provider, "_client", _FakeJsonClient([payload]))

    candidates = await provider.search("x", "tennis")

    assert [c.id for c in candidates] == ["7"]


@pytest.mark.asyncio
async def test_search_errors_propagate(monkeypatch):
    provider = SofaScoreProvider()
    monkeypatch.setattr(
        provider, "_client", _FakeJsonClient([ProviderResponseError("sofascore", "HTTP 500", status_code=500)])
    )
    with pytest.raises(ProviderResponseError):
        await provider.search("sinner", "tennis")

    monkeypatch.setattr(provider, "_client", _FakeJsonClient([["not", "an", "object"]]))
    with pytest.raises(ProviderResponseError):
        await provider.search("sinner", "tennis")


@pytest.mark.asyncio
async def test_upcoming_fixtures_parses_events(monkeypatch):
    provider = SofaScoreProvider(base_url="https://api.example/api/v1")
    fake = _FakeJsonClient(
        [
            {
                "events": [
                    {
                        "homeTeam": {"name": "Jannik Sinner"},
                        "awayTeam": {"name": "Francisco Cerúndolo"},
                        "tournament": {"name": "Paris Masters"},
                        "season": {"name": "ATP Paris 2025"},
                        "startTimestamp": 1761830400,
                    },
                    "garbage",
                ]
            }
        ]
    )
    monkeypatch.setattr(provider, "_client", fake)

    events = await provider.upcoming_fixtures("206570", EntityKind.player)

    assert fake.calls[0]["url"] == "https://api.example/api/v1/player/206570/events/next/0"
    assert len(events) == 1
    assert events[0].home_name == "Jannik Sinner"
    assert events[0].tournament_name == "Paris Masters"
    assert events[0].season_name == "ATP Paris 2025"
    assert events[0].start_timestamp == 1761830400


@pytest.mark.asyncio
async def test_recent_fixtures_uses_last_path_for_teams(monkeypatch):
    provider = SofaScoreProvider(base_url="https://api.example/api/v1")
    fake = _FakeJsonClient([{"events": []}])
    monkeypatch.setattr(provider, "_client", fake)

    assert await provider.recent_fixtures("2829", EntityKind.team) == []
    assert fake.calls[0]["url"] == "https://api.example/api/v1/team/2829/events/last/0"


@pytest.mark.asyncio
async def test_fixture_lookup_failures_yield_empty_list(monkeypatch):
    provider = SofaScoreProvider()
    monkeypatch.setattr(
        provider,
        "_client",
        _FakeJsonClient(
            [
                ProviderResponseError("sofascore", "HTTP 404", status_code=404),
                httpx.ReadTimeout("timed out"),
                {"unexpected": True},
            ]
        ),
    )

    assert await provider.upcoming_fixtures("1", EntityKind.player) == []
    assert await provider.upcoming_fixtures("1", EntityKind.player) == []
    assert await provider.upcoming_fixtures("1", EntityKind.player) == []
