"""discord.py implementation of the community gateway."""

from __future__ import annotations

import logging
import re

import discord

from covenant_gate.services.community import GatewayError

# Configure logger for this module
logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "verify-"
_MAX_CHANNEL_NAME = 100
_SLUG_PATTERN = re.compile(r"[^a-z0-9_-]+")


def channel_name_for(display_name: str, user_id: str) -> str:
    """Return a text-channel-safe name such as ``verify-alice``."""
    slug = _SLUG_PATTERN.sub("-", display_name.lower()).strip("-") or user_id
    return (CHANNEL_PREFIX + slug)[:_MAX_CHANNEL_NAME]


class DiscordGateway:
    """Performs community operations against one guild."""

    def __init__(self, client: discord.Client, guild_id: int) -> None:
        self.client = client
        self.guild_id = guild_id

    def _guild(self) -> discord.Guild:
        guild = self.client.get_guild(self.guild_id)
        if guild is None:
            raise GatewayError(f"Guild {self.guild_id} is not available")
        return guild

    async def _member(self, guild: discord.Guild, user_id: str) -> discord.Member:
        member = guild.get_member(int(user_id))
        if member is not None:
            return member
        try:
            return await guild.fetch_member(int(user_id))
        except discord.DiscordException as exc:
            raise GatewayError(f"Member {user_id} not found: {exc}") from exc

    async def _channel(self, channel_id: str) -> discord.abc.Messageable:
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            try:
                channel = await self.client.fetch_channel(int(channel_id))
            except discord.DiscordException as exc:
                raise GatewayError(f"Channel {channel_id} not found: {exc}") from exc
        return channel  # type: ignore[return-value]

    async def create_private_channel(self, user_id: str, display_name: str) -> str:
        guild = self._guild()
        member = await self._member(guild, user_id)
        private = discord.PermissionOverwrite(view_channel=True, send_messages=True)
        overwrites = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            member: private,
            guild.me: private,
        }
        try:
            channel = await guild.create_text_channel(
                channel_name_for(display_name, user_id),
                overwrites=overwrites,
                reason=f"Wallet verification for {user_id}",
            )
        except discord.DiscordException as exc:
            raise GatewayError(f"Could not create channel: {exc}") from exc
        logger.debug("Created verification channel %s for user %s", channel.id, user_id)
        return str(channel.id)

    async def send_message(self, channel_id: str, content: str) -> None:
        channel = await self._channel(channel_id)
        try:
            await channel.send(content)
        except discord.DiscordException as exc:
            raise GatewayError(f"Could not post to channel {channel_id}: {exc}") from exc

    async def delete_channel(self, channel_id: str) -> None:
        channel = await self._channel(channel_id)
        try:
            await channel.delete(reason="Wallet verification finished")  # type: ignore[attr-defined]
        except discord.DiscordException as exc:
            raise GatewayError(f"Could not delete channel {channel_id}: {exc}") from exc

    async def role_catalog(self) -> set[str]:
        return {role.name for role in self._guild().roles}

    async def member_roles(self, user_id: str) -> set[str]:
        member = await self._member(self._guild(), user_id)
        return {role.name for role in member.roles}

    async def add_role(self, user_id: str, role_name: str) -> None:
        guild = self._guild()
        role = discord.utils.get(guild.roles, name=role_name)
        if role is None:
            raise GatewayError(f"Role {role_name!r} does not exist")
        member = await self._member(guild, user_id)
        try:
            await member.add_roles(role, reason="Covenant signatory verification")
        except discord.DiscordException as exc:
            raise GatewayError(f"Could not add role {role_name!r}: {exc}") from exc
