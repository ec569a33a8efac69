"""Covenant registry client.

The registry offers no server-side filtering, so eligibility is decided by
downloading the full signer export and matching locally.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

import httpx
from pydantic import ValidationError

from covenant_gate.core.settings import settings
from covenant_gate.schemas.external import WhitelistEntry, WhitelistExport

# Configure logger for this module
logger = logging.getLogger(__name__)

HTTP_OK = 200


class WhitelistError(RuntimeError):
    """Transient failure fetching or parsing the registry export."""


class Eligibility(Enum):
    """Result of matching a wallet against the registry."""

    ELIGIBLE = "eligible"
    NOT_ELIGIBLE = "not_eligible"


@dataclass(frozen=True)
class EligibilityResult:
    status: Eligibility
    entry: WhitelistEntry | None = None

    @property
    def eligible(self) -> bool:
        return self.status is Eligibility.ELIGIBLE


@dataclass(frozen=True)
class WhitelistConfig:
    """Immutable configuration for registry lookups."""

    url: str
    api_key: str
    timeout_seconds: float


def load_whitelist_config() -> WhitelistConfig:
    """Build configuration object from global settings."""
    return WhitelistConfig(
        url=settings.whitelist_api_url,
        api_key=settings.whitelist_api_key,
        timeout_seconds=float(settings.http_timeout_seconds),
    )


class WhitelistClient:
    """HTTP client wrapper for the covenant signer export."""

    def __init__(
        self,
        config: WhitelistConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_whitelist_config()
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

    async def fetch_signers(self) -> list[WhitelistEntry]:
        """Download and parse the full signer export.

        Raises:
            WhitelistError: On network failure, timeout, non-200 status or an
                unparseable body.
        """
        client = await self._ensure_client()
        try:
            response = await client.get(self.config.url, params={"apiKey": self.config.api_key})
        except httpx.HTTPError as exc:
            raise WhitelistError(f"Whitelist request failed: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise WhitelistError(f"Whitelist responded with {response.status_code}")

        try:
            export = WhitelistExport.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise WhitelistError(f"Whitelist response could not be parsed: {exc}") from exc

        logger.debug("Fetched %d whitelist records", len(export.signers))
        return export.signers

    async def fetch_eligible(self, wallet: str) -> EligibilityResult:
        """Return whether `wallet` is SIGNED and VERIFIED in the registry."""
        for entry in await self.fetch_signers():
            if entry.matches(wallet):
                return EligibilityResult(Eligibility.ELIGIBLE, entry)
        return EligibilityResult(Eligibility.NOT_ELIGIBLE)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
