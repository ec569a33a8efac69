"""Schemas for the signature submission endpoint."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SignatureSubmission(BaseModel):
    """Signature posted by the browser signer page."""

    user_id: str = Field(..., alias="userId", min_length=1, description="Chat platform user id")
    signature: str = Field(..., min_length=1, description="Hex personal-sign signature")

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class SignatureResult(BaseModel):
    """Successful verification response."""

    success: bool = True
    score: int = Field(..., ge=0, description="Reputation score used for tiered roles")
    roles: list[str] = Field(default_factory=list, description="Role names granted")
