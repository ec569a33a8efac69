"""Chat platform integration (discord.py)."""

from .client import VerifierBot
from .gateway import DiscordGateway

__all__ = ["DiscordGateway", "VerifierBot"]
