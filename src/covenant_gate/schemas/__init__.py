"""
Pydantic schemas for API request/response models and external payloads.

These schemas define the structure of data crossing the HTTP boundary, both
the public signature endpoint and the registry/reputation services we consume.
"""

from .external import ReputationPayload, WhitelistEntry, WhitelistExport
from .signature import SignatureResult, SignatureSubmission

__all__ = [
    "ReputationPayload",
    "SignatureResult",
    "SignatureSubmission",
    "WhitelistEntry",
    "WhitelistExport",
]
