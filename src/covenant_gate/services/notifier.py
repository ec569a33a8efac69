"""Outcome notices and deferred cleanup of private channels."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from covenant_gate.services.community import CommunityGateway

# Configure logger for this module
logger = logging.getLogger(__name__)


class DeferredTasks:
    """Fire-and-forget runner for delayed coroutines.

    Scheduled work always runs after its delay and is never cancelled by later
    state changes. Its failures are logged at debug level and discarded; they
    never reach the code that scheduled the task.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(self, delay: float, factory: Callable[[], Awaitable[None]], *, name: str) -> asyncio.Task[None]:
        async def _run() -> None:
            await asyncio.sleep(max(0.0, delay))
            await factory()

        task = asyncio.create_task(_run(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._discard)
        return task

    def _discard(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Deferred task %s failed: %s", task.get_name(), exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled task; used on shutdown and in tests."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)


def render_success(score: int, roles: list[str]) -> str:
    granted = ", ".join(roles) or "None"
    return (
        "✅ **Wallet verified**\n\n"
        f"🧮 Passport score: **{score}**\n"
        f"🏷 Roles granted: **{granted}**\n\n"
        "Channel will close shortly…"
    )


def render_failure(reason: str) -> str:
    return f"❌ **Verification failed**\n\n{reason}\n\nChannel will close shortly…"


class Notifier:
    """Posts verification outcomes and schedules channel deletion."""

    def __init__(
        self,
        gateway: CommunityGateway,
        *,
        delete_delay_seconds: float,
        tasks: DeferredTasks | None = None,
    ) -> None:
        self.gateway = gateway
        self.delete_delay_seconds = delete_delay_seconds
        self.tasks = tasks or DeferredTasks()

    async def _post(self, channel_id: str, content: str) -> None:
        try:
            await self.gateway.send_message(channel_id, content)
        except Exception as exc:
            logger.warning("Could not post outcome to channel %s: %s", channel_id, exc)

    async def notify_success(self, channel_id: str, score: int, roles: list[str]) -> None:
        """Post the success summary, then schedule the channel's deletion."""
        await self._post(channel_id, render_success(score, roles))
        self.schedule_channel_deletion(channel_id)

    async def notify_failure(self, channel_id: str, reason: str) -> None:
        """Post a failure notice, then schedule the channel's deletion."""
        await self._post(channel_id, render_failure(reason))
        self.schedule_channel_deletion(channel_id)

    def schedule_channel_deletion(self, channel_id: str, delay: float | None = None) -> None:
        wait = self.delete_delay_seconds if delay is None else delay
        logger.info("Channel %s scheduled for deletion in %.1fs", channel_id, wait)
        self.tasks.schedule(
            wait,
            lambda: self.gateway.delete_channel(channel_id),
            name=f"delete-channel-{channel_id}",
        )
