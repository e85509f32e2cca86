"""
backend/tests/test_web_verifier.py

Purpose:
    Verified fallback allow-list enforcement, reply parsing and request
    shape for the Responses API call.
"""

from __future__ import annotations

import json

import httpx
import pytest

from app.providers.http_client import ProviderResponseError
from app.providers.web_verifier import (
    WebVerifierProvider,
    is_allowed_source,
    parse_verifier_payload,
    trusted_domains_for,
)


class _FakeJsonClient:
    def __init__(self, outcome) -> None:
        self._outcome = outcome
        self.calls: list[dict] = []

    async def post_json(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome

    async def aclose(self):
        return None


def _responses_payload(reply: dict | str) -> dict:
    text = reply if isinstance(reply, str) else json.dumps(reply)
    return {
        "output": [
            {"type": "web_search_call", "status": "completed"},
            {"type": "message", "content": [{"type": "output_text", "text": text}]},
        ]
    }


def test_allow_list_matches_domain_and_subdomains_only():
    assert is_allowed_source("https://www.atptour.com/en/scores", "tennis")
    assert is_allowed_source("https://atptour.com/x", "tennis")
    assert not is_allowed_source("https://some-random-blog.com/sinner-paris", "tennis")
    assert not is_allowed_source("https://atptour.com.evil.io/x", "tennis")
    assert not is_allowed_source("https://notatptour.com/x", "tennis")
    assert not is_allowed_source("ftp://atptour.com/x", "tennis")
    assert not is_allowed_source(None, "tennis")


def test_allow_lists_are_per_sport():
    assert is_allowed_source("https://www.premierleague.com/match/1", "football")
    assert is_allowed_source("https://www.premierleague.com/match/1", "soccer")
    assert not is_allowed_source("https://www.premierleague.com/match/1", "tennis")
    assert "sofascore.com" in trusted_domains_for("curling")


def test_parse_verifier_payload_handles_fences_and_camel_case():
    found = parse_verifier_payload(
        '```json\n{"tournament": "Paris Masters", "startIso": "2025-10-30T13:20:00Z",'
        ' "tz": "Europe/Paris", "sourceUrl": "https://www.atptour.com/x", "confidence": "0.8"}\n```'
    )
    assert found == {
        "tournament": "Paris Masters",
        "start_iso": "2025-10-30T13:20:00Z",
        "tz": "Europe/Paris",
        "source_url": "https://www.atptour.com/x",
        "confidence": 0.8,
    }

    with pytest.raises(ValueError):
        parse_verifier_payload("[1, 2]")
    with pytest.raises(ValueError):
        parse_verifier_payload("Sorry, I could not find it.")


def test_accept_discards_untrusted_source_even_with_valid_time():
    verifier = WebVerifierProvider(api_key="sk-test")
    result = verifier.accept(
        {
            "tournament": "Paris Masters",
            "start_iso": "2025-10-30T13:20:00Z",
            "source_url": "https://some-random-blog.com/sinner",
        },
        "tennis",
    )
    assert result is None


def test_accept_requires_concrete_kickoff():
    verifier = WebVerifierProvider(api_key="sk-test")
    base = {"tournament": "Paris Masters", "source_url": "https://www.atptour.com/x"}
    assert verifier.accept({**base, "start_iso": None}, "tennis") is None
    assert verifier.accept({**base, "start_iso": "tomorrow evening"}, "tennis") is None


@pytest.mark.asyncio
async def test_verify_returns_allow_listed_result(monkeypatch):
    verifier = WebVerifierProvider(api_key="sk-test", base_url="https://llm.example/v1", model="test-model")
    fake = _FakeJsonClient(
        _responses_payload(
            {
                "tournament": "Paris Masters",
                "startIso": "2025-10-30T14:20:00+01:00",
                "tz": "Europe/Paris",
                "sourceUrl": "https://www.atptour.com/en/scores/current/paris/352/daily-schedule",
                "confidence": 0.9,
            }
        )
    )
    monkeypatch.setattr(verifier, "_client", fake)

    result = await verifier.verify("J. Sinner vs F. Cerúndolo", "tennis")

    assert result is not None
    assert result.tournament == "Paris Masters"
    assert result.start_iso == "2025-10-30T13:20:00Z"
    assert result.tz == "Europe/Paris"
    assert result.confidence == 0.9
    assert result.strategy == "verified"
    assert result.sources == ["https://www.atptour.com/en/scores/current/paris/352/daily-schedule"]

    call = fake.calls[0]
    assert call["url"] == "https://llm.example/v1/responses"
    assert call["json"]["model"] == "test-model"
    tool = call["json"]["tools"][0]
    assert tool["type"] == "web_search"
    assert "atptour.com" in tool["filters"]["allowed_domains"]
    assert "J. Sinner vs F. Cerúndolo" in call["json"]["input"][1]["content"]


@pytest.mark.asyncio
async def test_verify_rejects_untrusted_source(monkeypatch):
    verifier = WebVerifierProvider(api_key="sk-test")
    monkeypatch.setattr(
        verifier,
        "_client",
        _FakeJsonClient(
            _responses_payload(
                {
                    "tournament": "Paris Masters",
                    "startIso": "2025-10-30T13:20:00Z",
                    "sourceUrl": "https://some-random-blog.com/post",
                }
            )
        ),
    )
    assert await verifier.verify("J. Sinner vs F. Cerúndolo", "tennis") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome",
    [
        ProviderResponseError("web_verifier", "HTTP 500", status_code=500),
        httpx.ReadTimeout("timed out"),
        {"output": []},
    ],
)
async def test_verify_failures_are_not_found(monkeypatch, outcome):
    verifier = WebVerifierProvider(api_key="sk-test")
    monkeypatch.setattr(verifier, "_client", _FakeJsonClient(outcome))
    assert await verifier.verify("J. Sinner vs F. Cerúndolo", "tennis") is None


@pytest.mark.asyncio
async def test_verify_disabled_without_api_key(monkeypatch):
    verifier = WebVerifierProvider(api_key="")
    fake = _FakeJsonClient({})
    monkeypatch.setattr(verifier, "_client", fake)

    assert not verifier.enabled
    assert await verifier.verify("J. Sinner vs F. Cerúndolo", "tennis") is None
    assert fake.calls == []
