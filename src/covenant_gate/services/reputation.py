"""Reputation score lookups.

Reputation only tiers extra roles, so a failed lookup never aborts a
verification: the adapter returns a `ScoreLookup` carrying the default score
and the error that caused it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Final

import httpx
from pydantic import ValidationError

from covenant_gate.core.settings import settings
from covenant_gate.schemas.external import ReputationPayload

# Configure logger for this module
logger = logging.getLogger(__name__)

DEFAULT_SCORE: Final[int] = 0
HTTP_OK = 200


class ReputationError(RuntimeError):
    """Raised internally when a score cannot be obtained."""


@dataclass(frozen=True)
class ScoreLookup:
    """Result of a reputation lookup with its fallback made explicit."""

    score: int
    ok: bool
    error: str | None = None

    @classmethod
    def fallback(cls, error: str) -> ScoreLookup:
        return cls(score=DEFAULT_SCORE, ok=False, error=error)


@dataclass(frozen=True)
class ReputationConfig:
    """Immutable configuration for reputation lookups."""

    url: str
    api_key: str
    timeout_seconds: float


def load_reputation_config() -> ReputationConfig:
    """Build configuration object from global settings."""
    return ReputationConfig(
        url=settings.reputation_api_url,
        api_key=settings.reputation_api_key,
        timeout_seconds=float(settings.http_timeout_seconds),
    )


class ReputationClient:
    """HTTP client wrapper for the scoring service."""

    def __init__(
        self,
        config: ReputationConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_reputation_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def _request_score(self, wallet: str) -> int:
        client = await self._ensure_client()
        url = f"{self.config.url.rstrip('/')}/{wallet}"
        try:
            response = await client.get(url, headers={"X-API-KEY": self.config.api_key})
        except httpx.HTTPError as exc:
            raise ReputationError(f"Reputation request failed: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise ReputationError(f"Reputation API responded with {response.status_code}")

        try:
            return ReputationPayload.model_validate(response.json()).score
        except (ValueError, ValidationError) as exc:
            raise ReputationError(f"Reputation response could not be parsed: {exc}") from exc

    async def fetch_score(self, wallet: str) -> ScoreLookup:
        """Return the wallet's score, or the default score if the lookup fails."""
        try:
            score = await self._request_score(wallet)
        except ReputationError as exc:
            logger.warning("Reputation lookup for %s failed, using %d: %s", wallet, DEFAULT_SCORE, exc)
            return ScoreLookup.fallback(str(exc))
        return ScoreLookup(score=score, ok=True)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
