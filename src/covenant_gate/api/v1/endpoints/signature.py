# src/covenant_gate/api/v1/endpoints/signature.py
"""Signature submission endpoint driven by the browser signer page."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from covenant_gate.api.v1.dependencies import VerificationServiceDep
from covenant_gate.schemas.signature import SignatureResult, SignatureSubmission
from covenant_gate.services.verification import VerificationError

# Configure logger for this module
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["verification"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "/signature",
    response_model=SignatureResult,
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "Missing fields, no session or bad signature"},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Unexpected verification failure"},
    },
)
async def submit_signature(
    payload: SignatureSubmission,
    service: VerificationServiceDep,
) -> SignatureResult | JSONResponse:
    """Verify a signed challenge and grant the caller's roles.

    Args:
        payload: The user id the challenge was issued to and the wallet signature.
        service: Verification service holding pending sessions.

    Returns:
        The reputation score and the roles granted, or an ``{"error": ...}``
        body with status 400 (user-facing rejection) or 500 (anything else).
    """
    try:
        outcome = await service.verify_signature(payload.user_id.strip(), payload.signature)
    except VerificationError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, exc.message)
    except Exception:
        logger.error("Unexpected failure verifying signature for user %s", payload.user_id, exc_info=True)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Verification failed")

    return SignatureResult(score=outcome.score, roles=outcome.roles)
