"""Version 1 API endpoints."""

from .endpoints import signature_router, signer_router

__all__ = ["signature_router", "signer_router"]
