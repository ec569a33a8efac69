"""Schemas for the external registry and reputation APIs.

Both services are read-only collaborators; these models are the single place
their response shapes are interpreted.
"""
from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WhitelistEntry(BaseModel):
    """One signer record from the covenant registry export."""

    wallet_address: str | None = Field(None, alias="walletAddress")
    covenant_status: str | None = Field(None, alias="covenantStatus")
    humanity_status: str | None = Field(None, alias="humanityStatus")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def matches(self, wallet: str) -> bool:
        """Return True if this record makes `wallet` eligible.

        Address equality is case-insensitive, and so are both status values.
        """
        if not self.wallet_address:
            return False
        return (
            self.wallet_address.strip().lower() == wallet.strip().lower()
            and (self.covenant_status or "").upper() == "SIGNED"
            and (self.humanity_status or "").upper() == "VERIFIED"
        )


class WhitelistExport(BaseModel):
    """Top-level registry export document."""

    signers: list[WhitelistEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("signers", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ReputationPayload(BaseModel):
    """Reputation score response.

    Accepted shapes:
        - ``{"score": <number|numeric string>}``
        - ``{"data": {"score": <number|numeric string>}}``

    The top-level ``score`` wins when both are present. Fractional scores are
    floored; missing or null scores are rejected.
    """

    score: int = Field(..., ge=0)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _unwrap_data(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            raise ValueError("Reputation response must be a JSON object")
        if value.get("score") is not None:
            return {"score": value["score"]}
        data = value.get("data")
        if isinstance(data, dict) and data.get("score") is not None:
            return {"score": data["score"]}
        raise ValueError("Reputation response has no score")

    @field_validator("score", mode="before")
    @classmethod
    def _floor_score(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("Score must be numeric")
        try:
            number = float(value)
        except TypeError as exc:
            raise ValueError("Score must be numeric") from exc
        if not math.isfinite(number):
            raise ValueError("Score must be finite")
        return max(0, math.floor(number))
