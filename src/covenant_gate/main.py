# src/covenant_gate/main.py
"""Main entry point for the Covenant Gate application."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from covenant_gate.api.v1 import signature_router, signer_router
from covenant_gate.bot import DiscordGateway, VerifierBot
from covenant_gate.core.logging import configure_logging
from covenant_gate.core.settings import settings
from covenant_gate.services.community import CommunityGateway
from covenant_gate.services.cooldown import get_cooldown_gate
from covenant_gate.services.notifier import Notifier
from covenant_gate.services.reputation import ReputationClient
from covenant_gate.services.roles import get_role_engine
from covenant_gate.services.sessions import get_session_store
from covenant_gate.services.verification import VerificationService
from covenant_gate.services.whitelist import WhitelistClient

# Configure logger for this module
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Covenant Gate",
    description="Wallet-ownership verification for covenant signatory roles",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers
app.include_router(signature_router)
app.include_router(signer_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies with the same error shape as verification rejections."""
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Missing userId or signature"},
    )


def build_verification_service(gateway: CommunityGateway) -> VerificationService:
    """Assemble the verification service and its collaborators from settings."""
    return VerificationService(
        gateway=gateway,
        whitelist=WhitelistClient(),
        reputation=ReputationClient(),
        cooldowns=get_cooldown_gate(),
        sessions=get_session_store(),
        roles=get_role_engine(),
        notifier=Notifier(gateway, delete_delay_seconds=settings.channel_delete_delay_seconds),
    )


def _log_bot_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Discord client stopped: %s", exc, exc_info=exc)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.log_level)

    bot = VerifierBot(
        guild_id=settings.guild_id,
        application_id=settings.application_id,
        service_provider=lambda: app.state.verification_service,
    )
    app.state.bot = bot
    app.state.verification_service = build_verification_service(
        DiscordGateway(bot, settings.guild_id)
    )

    if settings.discord_enabled:
        task = asyncio.create_task(bot.start(settings.bot_token), name="discord-client")
        task.add_done_callback(_log_bot_exit)
        app.state.bot_task = task
    else:
        logger.warning("DISCORD_ENABLED is false; /verify will not be available")
        app.state.bot_task = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    service: VerificationService | None = getattr(app.state, "verification_service", None)
    if service is not None:
        await service.notifier.tasks.drain()
        await service.whitelist.close()
        await service.reputation.close()

    bot: VerifierBot | None = getattr(app.state, "bot", None)
    if bot is not None and not bot.is_closed():
        await bot.close()
    task: asyncio.Task[None] | None = getattr(app.state, "bot_task", None)
    if task is not None:
        await asyncio.gather(task, return_exceptions=True)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "signer": "/signer.html",
    }


def run() -> None:
    """Serve the HTTP API (and the Discord client) with uvicorn."""
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run("covenant_gate.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
