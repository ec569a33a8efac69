"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from covenant_gate.services.verification import VerificationService


def get_verification_service(request: Request) -> VerificationService:
    """Return the verification service wired at application startup.

    Raises:
        HTTPException: 503 if startup has not completed.
    """
    service: VerificationService | None = getattr(request.app.state, "verification_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Verification service is not ready",
        )
    return service


# Type alias for the verification service dependency
VerificationServiceDep = Annotated[VerificationService, Depends(get_verification_service)]
