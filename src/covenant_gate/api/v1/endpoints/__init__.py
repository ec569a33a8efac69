# src/covenant_gate/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .signature import router as signature_router
from .signer import router as signer_router

__all__ = ["signature_router", "signer_router"]
