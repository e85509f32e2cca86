"""
backend/app/providers/http_client.py

Purpose:
    Shared outbound HTTP for the sports data and verifier providers: one
    httpx.AsyncClient per provider with a per-call timeout, optional capped
    backoff on transient failures, and a per-provider circuit breaker.
    JSON helpers turn every unusable answer into ProviderResponseError.
"""

import asyncio
import logging
import time
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from app.config import settings

logger = logging.getLogger("slipscan.http_client")

_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
_NETWORK_ERRORS = (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError)


class ProviderResponseError(Exception):
    """Upstream answered, but not with a usable payload (non-2xx, bad JSON, open circuit)."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"[{provider}] {message}")
        self.provider = provider
        self.status_code = status_code


class CircuitBreaker:
    """Opens after N consecutive failures; one probe is let through after the recovery window."""

    def __init__(self, failure_threshold: Optional[int] = None, recovery_timeout: Optional[float] = None):
        self.failure_threshold = (
            settings.CIRCUIT_FAILURE_THRESHOLD if failure_threshold is None else failure_threshold
        )
        self.recovery_timeout = (
            settings.CIRCUIT_RECOVERY_SECONDS if recovery_timeout is None else recovery_timeout
        )
        self.failure_count = 0
        self.opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        if self.opened_at is None:
            return "closed"
        if time.monotonic() - self.opened_at >= self.recovery_timeout:
            return "half_open"
        return "open"

    def record_success(self) -> None:
        self.failure_count = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        if self.failure_count >= self.failure_threshold:
            if self.opened_at is None:
                logger.warning("Circuit breaker OPEN after %d failures", self.failure_count)
            # A failed half-open probe restarts the window
            self.opened_at = time.monotonic()

    def can_attempt(self) -> bool:
        return self.state != "open"


def _retry_after(response: httpx.Response) -> Optional[float]:
    for header in ("retry-after", "x-ratelimit-retry-after"):
        value = response.headers.get(header)
        if value is None:
            continue
        try:
            return float(value)
        except (ValueError, TypeError):
            continue
    return None


def _safe_url(url: str) -> str:
    """Strip query params (search text, API keys) for logging."""
    parsed = urlparse(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


class ResilientClient:
    def __init__(
        self,
        name: str,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        default_headers = {
            "User-Agent": settings.HTTP_USER_AGENT,
            "Accept-Language": settings.HTTP_ACCEPT_LANGUAGE,
        }
        default_headers.update(headers or {})
        self._timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout
        self._client = httpx.AsyncClient(timeout=self._timeout, headers=default_headers)
        self._name = name
        self._max_retries = settings.HTTP_MAX_RETRIES if max_retries is None else max_retries
        self._base_delay = settings.HTTP_RETRY_BASE_DELAY_SECONDS if base_delay is None else base_delay
        self.circuit = CircuitBreaker()

    @property
    def name(self) -> str:
        return self._name

    def _backoff(self, attempt: int, response: Optional[httpx.Response] = None) -> float:
        delay = _retry_after(response) if response is not None else None
        if delay is None:
            delay = self._base_delay * (2 ** attempt)
        return min(delay, settings.HTTP_RETRY_MAX_DELAY_SECONDS)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """One attempt bounded end to end; httpx's own timeout applies per connect/read phase."""
        try:
            return await asyncio.wait_for(self._client.request(method, url, **kwargs), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise httpx.TimeoutException(
                f"{method} {_safe_url(url)} exceeded {self._timeout}s"
            ) from exc

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send with retries; returns the last retryable response, or raises the last network error."""
        attempts = self._max_retries + 1
        last_resp: Optional[httpx.Response] = None

        for attempt in range(attempts):
            try:
                resp = await self._send(method, url, **kwargs)
            except _NETWORK_ERRORS as exc:
                logger.warning(
                    "[%s] %s %s failed (attempt %d/%d): %r",
                    self._name, method, _safe_url(url), attempt + 1, attempts, exc,
                )
                if attempt + 1 >= attempts:
                    raise
                await asyncio.sleep(self._backoff(attempt))
                continue

            if resp.status_code not in _RETRYABLE_STATUSES:
                return resp

            last_resp = resp
            logger.warning(
                "[%s] %s %s -> HTTP %d (attempt %d/%d)",
                self._name, method, _safe_url(url), resp.status_code, attempt + 1, attempts,
            )
            if attempt + 1 < attempts:
                await asyncio.sleep(self._backoff(attempt, resp))

        return last_resp

    async def request_json(self, method: str, url: str, **kwargs) -> Any:
        """Decoded JSON body; non-2xx, undecodable bodies and an open circuit all raise."""
        if not self.circuit.can_attempt():
            raise ProviderResponseError(self._name, f"circuit open, skipping {_safe_url(url)}")

        try:
            resp = await self.request(method, url, **kwargs)
        except httpx.HTTPError:
            self.circuit.record_failure()
            raise

        if not 200 <= resp.status_code < 300:
            if resp.status_code in _RETRYABLE_STATUSES:
                self.circuit.record_failure()
            raise ProviderResponseError(
                self._name,
                f"HTTP {resp.status_code} for {_safe_url(url)}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderResponseError(
                self._name, f"invalid JSON from {_safe_url(url)}: {exc}", status_code=resp.status_code,
            ) from exc

        self.circuit.record_success()
        return payload

    async def get_json(self, url: str, **kwargs) -> Any:
        return await self.request_json("GET", url, **kwargs)

    async def post_json(self, url: str, **kwargs) -> Any:
        return await self.request_json("POST", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
