"""
backend/app/providers/web_verifier.py

Purpose:
    Last-resort fixture verification through an LLM with web browsing,
    restricted to trusted domains per sport. A reply is only accepted when it
    cites an allow-listed source URL and a concrete kickoff time.

Dependencies:
    - app.providers.http_client
    - app.utils
"""

import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from app.config import settings
from app.models.fixtures import ResolutionResult
from app.providers.http_client import ProviderResponseError, ResilientClient
from app.utils import parse_utc, to_iso_utc

logger = logging.getLogger("slipscan.web_verifier")

PROVIDER_NAME = "web_verifier"

_AGGREGATORS = ("sofascore.com", "flashscore.com", "espn.com")

TRUSTED_DOMAINS: dict[str, tuple[str, ...]] = {
    "tennis": (
        "atptour.com",
        "wtatennis.com",
        "itftennis.com",
        "ausopen.com",
        "rolandgarros.com",
        "wimbledon.com",
        "usopen.org",
    ) + _AGGREGATORS,
    "football": (
        "uefa.com",
        "fifa.com",
        "laliga.com",
        "premierleague.com",
        "bundesliga.com",
        "legaseriea.it",
        "ligue1.com",
        "bbc.co.uk",
    ) + _AGGREGATORS,
    "basketball": (
        "nba.com",
        "euroleaguebasketball.net",
        "fiba.basketball",
        "acb.com",
    ) + _AGGREGATORS,
}
DEFAULT_TRUSTED_DOMAINS: tuple[str, ...] = _AGGREGATORS

_SPORT_ALIASES = {"soccer": "football", "futbol": "football", "fútbol": "football", "tenis": "tennis", "baloncesto": "basketball"}

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

_SYSTEM_PROMPT = """You verify sports fixtures using web search.
Only use the allowed domains. Reply with ONLY a JSON object:
{"tournament": string|null, "startIso": string|null, "tz": string|null, "sourceUrl": string|null, "confidence": number}
startIso must be the scheduled start in UTC (ISO 8601). sourceUrl must be the page that states the start time.
If you cannot confirm the fixture on an allowed domain, return nulls. Never guess."""


def _canonical_sport(sport_hint: Optional[str]) -> str:
    sport = (sport_hint or settings.DEFAULT_SPORT or "").strip().lower()
    return _SPORT_ALIASES.get(sport, sport)


def trusted_domains_for(sport_hint: Optional[str]) -> tuple[str, ...]:
    return TRUSTED_DOMAINS.get(_canonical_sport(sport_hint), DEFAULT_TRUSTED_DOMAINS)


def is_allowed_source(url: Optional[str], sport_hint: Optional[str] = None) -> bool:
    """True when url is http(s) and its host is an allow-listed domain or one of its subdomains."""
    if not url:
        return False
    parsed = urlparse(str(url).strip())
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower().rstrip(".")
    if not host:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in trusted_domains_for(sport_hint))


def parse_verifier_payload(text: str) -> dict[str, Any]:
    """Decode the model's JSON reply (optionally fenced) into snake_case keys.

    Raises ValueError when the reply is not a JSON object.
    """
    cleaned = _FENCE_RE.sub("", str(text or "").strip())
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("verifier reply is not a JSON object")
    confidence = data.get("confidence")
    try:
        confidence = float(confidence) if confidence is not None else None
    except (TypeError, ValueError):
        confidence = None
    return {
        "tournament": (str(data.get("tournament") or "").strip() or None),
        "start_iso": data.get("startIso") or data.get("start_iso"),
        "tz": data.get("tz") or None,
        "source_url": data.get("sourceUrl") or data.get("source_url"),
        "confidence": confidence,
    }


def _output_text(payload: Any) -> str:
    """Concatenate the assistant text parts of a Responses API payload."""
    if not isinstance(payload, dict):
        return ""
    parts: list[str] = []
    for item in payload.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for content in item.get("content") or []:
            if isinstance(content, dict) and content.get("type") == "output_text":
                parts.append(str(content.get("text") or ""))
    return "".join(parts)


class WebVerifierProvider:
    """OpenAI Responses API with the web_search tool, filtered to trusted domains."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, model: Optional[str] = None):
        self._api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self._base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self._model = model or settings.VERIFIER_MODEL
        self._client = ResilientClient(
            PROVIDER_NAME,
            timeout=settings.VERIFIER_TIMEOUT_SECONDS,
            headers={"Authorization": f"Bearer {self._api_key}"} if self._api_key else None,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def _request_body(self, match_text: str, sport_hint: Optional[str]) -> dict[str, Any]:
        return {
            "model": self._model,
            "tools": [
                {
                    "type": "web_search",
                    "filters": {"allowed_domains": list(trusted_domains_for(sport_hint))},
                }
            ],
            "input": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Find the tournament and exact start time of the {_canonical_sport(sport_hint) or 'sports'} match: {match_text}",
                },
            ],
        }

    async def verify(self, match_text: str, sport_hint: Optional[str] = None) -> Optional[ResolutionResult]:
        """Return a verified result, or None when nothing trustworthy was found."""
        if not self.enabled:
            logger.debug("web verifier disabled (no API key)")
            return None

        try:
            payload = await self._client.post_json(
                f"{self._base_url}/responses",
                json=self._request_body(match_text, sport_hint),
            )
        except (ProviderResponseError, httpx.HTTPError) as e:
            logger.warning("web verifier call failed for %r: %s", match_text, e)
            return None

        try:
            found = parse_verifier_payload(_output_text(payload))
        except ValueError as e:
            logger.warning("web verifier reply for %r unreadable: %s", match_text, e)
            return None

        return self.accept(found, sport_hint)

    def accept(self, found: dict[str, Any], sport_hint: Optional[str] = None) -> Optional[ResolutionResult]:
        """Apply the allow-list and kickoff checks to a parsed verifier reply."""
        source_url = found.get("source_url")
        if not is_allowed_source(source_url, sport_hint):
            logger.info("web verifier source rejected (not allow-listed): %s", source_url)
            return None

        raw_start = found.get("start_iso")
        if not raw_start:
            logger.info("web verifier gave no kickoff time (source %s)", source_url)
            return None
        try:
            start = parse_utc(str(raw_start))
        except ValueError:
            logger.info("web verifier kickoff unparsable: %r", raw_start)
            return None

        return ResolutionResult(
            tournament=found.get("tournament"),
            start_iso=to_iso_utc(start),
            tz=found.get("tz"),
            confidence=found.get("confidence"),
            sources=[str(source_url)],
            strategy="verified",
        )

    async def aclose(self) -> None:
        await self._client.aclose()
