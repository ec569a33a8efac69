# src/covenant_gate/services/__init__.py
"""Business logic services for the verification protocol."""

from .cooldown import CooldownGate
from .notifier import DeferredTasks, Notifier
from .reputation import ReputationClient
from .roles import RoleGrantEngine
from .sessions import SessionStore
from .verification import VerificationService
from .whitelist import WhitelistClient

__all__ = [
    "CooldownGate",
    "DeferredTasks",
    "Notifier",
    "ReputationClient",
    "RoleGrantEngine",
    "SessionStore",
    "VerificationService",
    "WhitelistClient",
]
