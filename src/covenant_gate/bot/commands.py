"""The ``/verify`` application command."""

from __future__ import annotations

import logging
from collections.abc import Callable

import discord
from discord import app_commands

from covenant_gate.services.verification import VerificationError, VerificationService

# Configure logger for this module
logger = logging.getLogger(__name__)

GENERIC_FAILURE = "❌ Verification could not be started. Please try again later."


async def run_verify_command(
    service: VerificationService,
    user_id: str,
    display_name: str,
    wallet: str,
) -> str:
    """Run the issuance flow and return the ephemeral reply text."""
    try:
        issued = await service.issue_challenge(user_id, display_name, wallet.strip())
    except VerificationError as exc:
        return exc.message
    except Exception:
        logger.error("Unexpected error issuing challenge for user %s", user_id, exc_info=True)
        return GENERIC_FAILURE
    return issued.reply


def register_commands(
    tree: app_commands.CommandTree,
    service_provider: Callable[[], VerificationService],
    guild_id: int,
) -> app_commands.Command:
    """Add ``/verify`` to `tree`, scoped to the target guild."""

    @tree.command(
        name="verify",
        description="Start wallet verification",
        guild=discord.Object(id=guild_id),
    )
    @app_commands.describe(wallet="Your wallet address")
    async def verify(interaction: discord.Interaction, wallet: str) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        reply = await run_verify_command(
            service_provider(),
            str(interaction.user.id),
            interaction.user.name,
            wallet,
        )
        await interaction.edit_original_response(content=reply)

    return verify
