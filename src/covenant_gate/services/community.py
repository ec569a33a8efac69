"""Interface to the chat platform hosting the community space.

The verification services only talk to the platform through this protocol;
`covenant_gate.bot.gateway.DiscordGateway` is the production implementation.
"""

from __future__ import annotations

from typing import Protocol


class GatewayError(RuntimeError):
    """Raised when the chat platform rejects or fails an operation."""


class CommunityGateway(Protocol):
    """Operations the verification flow needs from the community space."""

    async def create_private_channel(self, user_id: str, display_name: str) -> str:
        """Create a channel visible only to `user_id` and the bot; return its id."""
        ...

    async def send_message(self, channel_id: str, content: str) -> None:
        ...

    async def delete_channel(self, channel_id: str) -> None:
        ...

    async def role_catalog(self) -> set[str]:
        """Return the names of all roles defined in the space."""
        ...

    async def member_roles(self, user_id: str) -> set[str]:
        """Return the names of roles `user_id` currently holds."""
        ...

    async def add_role(self, user_id: str, role_name: str) -> None:
        ...
