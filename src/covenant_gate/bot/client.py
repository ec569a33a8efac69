"""Discord client hosting the verification command."""

from __future__ import annotations

import logging
from collections.abc import Callable

import discord
from discord.ext import commands

from covenant_gate.bot.commands import register_commands
from covenant_gate.services.verification import VerificationService

# Configure logger for this module
logger = logging.getLogger(__name__)


class VerifierBot(commands.Bot):
    """Bot that registers ``/verify`` on one guild and keeps its member cache."""

    def __init__(
        self,
        *,
        guild_id: int,
        application_id: int,
        service_provider: Callable[[], VerificationService],
    ) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=application_id,
            description="Covenant signatory verification",
        )
        self.guild_id = guild_id
        register_commands(self.tree, service_provider, guild_id)

    async def setup_hook(self) -> None:
        synced = await self.tree.sync(guild=discord.Object(id=self.guild_id))
        logger.info("Slash commands registered (%d) for guild %s", len(synced), self.guild_id)

    async def on_ready(self) -> None:
        logger.info("Logged in as %s", self.user)
