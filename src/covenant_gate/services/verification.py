"""Challenge issuance and signature verification workflows.

Issuance runs cooldown → eligibility → private channel → session + link.
Any rejection on the way leaves no session behind and no channel open.

Verification recovers the signer of the stored challenge, consumes the session
exactly once on a match, then tiers roles by reputation and reports the result
in the private channel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from covenant_gate.core.security import is_wallet_address, normalize_address, recover_signer
from covenant_gate.core.settings import settings
from covenant_gate.services.challenge import (
    build_signer_url,
    generate_challenge,
    render_challenge_message,
)
from covenant_gate.services.community import CommunityGateway, GatewayError
from covenant_gate.services.cooldown import CooldownGate
from covenant_gate.services.notifier import Notifier
from covenant_gate.services.reputation import ReputationClient
from covenant_gate.services.roles import RoleGrantEngine
from covenant_gate.services.sessions import SessionStore, VerificationSession
from covenant_gate.services.whitelist import WhitelistClient, WhitelistError

# Configure logger for this module
logger = logging.getLogger(__name__)


class VerificationError(RuntimeError):
    """Base class for rejections shown to the user."""

    message = "Verification failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidWalletError(VerificationError):
    message = "❌ That does not look like a wallet address (expected 0x followed by 40 hex digits)."


class CooldownActiveError(VerificationError):
    def __init__(self, remaining_seconds: int) -> None:
        self.remaining_seconds = remaining_seconds
        super().__init__(f"⏳ You can verify again in {remaining_seconds} seconds.")


class WalletNotEligibleError(VerificationError):
    message = "❌ Wallet not eligible: must be SIGNED + VERIFIED."


class WhitelistUnavailableError(VerificationError):
    message = "❌ Could not reach the covenant registry. Please try again after the cooldown."


class ChannelProvisioningError(VerificationError):
    message = "❌ Failed to create verification channel."


class NoActiveSessionError(VerificationError):
    message = "No active verification"


class MalformedSignatureError(VerificationError):
    message = "Malformed signature"


class SignatureMismatchError(VerificationError):
    def __init__(self, attempts_left: int) -> None:
        self.attempts_left = attempts_left
        if attempts_left > 0:
            message = "Signature mismatch"
        else:
            message = "Signature mismatch: too many attempts, run /verify again"
        super().__init__(message)


@dataclass(frozen=True)
class IssuedChallenge:
    """Result of a successful issuance."""

    session: VerificationSession
    signer_url: str

    @property
    def reply(self) -> str:
        return f"✅ Private verification channel created: <#{self.session.channel_id}>"


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of a successful signature verification."""

    user_id: str
    wallet: str
    score: int
    roles: list[str]
    reputation_ok: bool = True


class VerificationService:
    """Coordinates the challenge-response protocol across its collaborators."""

    def __init__(
        self,
        *,
        gateway: CommunityGateway,
        whitelist: WhitelistClient,
        reputation: ReputationClient,
        cooldowns: CooldownGate,
        sessions: SessionStore,
        roles: RoleGrantEngine,
        notifier: Notifier,
        external_url: str | None = None,
        max_signature_attempts: int | None = None,
    ) -> None:
        self.gateway = gateway
        self.whitelist = whitelist
        self.reputation = reputation
        self.cooldowns = cooldowns
        self.sessions = sessions
        self.roles = roles
        self.notifier = notifier
        self.external_url = external_url or settings.external_url
        self.max_signature_attempts = max_signature_attempts or settings.max_signature_attempts

    # --- Challenge issuance ---------------------------------------------------------
    async def issue_challenge(
        self,
        user_id: str,
        display_name: str,
        wallet: str,
        now: float | None = None,
    ) -> IssuedChallenge:
        """Start a verification for `user_id` claiming `wallet`.

        Raises:
            InvalidWalletError: The wallet is not a well-formed address.
            CooldownActiveError: The user attempted within the cooldown window.
            WhitelistUnavailableError: The registry could not be queried.
            WalletNotEligibleError: The wallet is not SIGNED + VERIFIED.
            ChannelProvisioningError: The private channel or challenge message failed.
        """
        if not is_wallet_address(wallet):
            raise InvalidWalletError()
        claimed = normalize_address(wallet)

        # The window is consumed here, before eligibility is known.
        decision = self.cooldowns.check_and_record(user_id, now)
        if not decision.allowed:
            logger.info("User %s blocked by cooldown (%ds left)", user_id, decision.remaining_seconds)
            raise CooldownActiveError(decision.remaining_seconds)

        try:
            eligibility = await self.whitelist.fetch_eligible(claimed)
        except WhitelistError as exc:
            logger.warning("Whitelist lookup failed for user %s: %s", user_id, exc)
            raise WhitelistUnavailableError() from exc

        if not eligibility.eligible:
            logger.info("Wallet %s for user %s is not eligible", claimed, user_id)
            raise WalletNotEligibleError()

        try:
            channel_id = await self.gateway.create_private_channel(user_id, display_name)
        except GatewayError as exc:
            logger.warning("Could not create verification channel for user %s: %s", user_id, exc)
            raise ChannelProvisioningError() from exc

        challenge = generate_challenge(claimed)
        session = VerificationSession(
            user_id=user_id,
            wallet=claimed,
            challenge=challenge,
            channel_id=channel_id,
        )
        previous = self.sessions.put(session)
        if previous is not None and previous.channel_id != channel_id:
            self.notifier.schedule_channel_deletion(previous.channel_id, delay=0)

        signer_url = build_signer_url(self.external_url, user_id, challenge)
        try:
            await self.gateway.send_message(channel_id, render_challenge_message(signer_url))
        except GatewayError as exc:
            logger.warning("Could not deliver challenge to channel %s: %s", channel_id, exc)
            self.sessions.consume(user_id, challenge)
            await self._delete_channel_now(channel_id)
            raise ChannelProvisioningError() from exc

        logger.info("Issued verification challenge to user %s for wallet %s", user_id, claimed)
        return IssuedChallenge(session=session, signer_url=signer_url)

    async def _delete_channel_now(self, channel_id: str) -> None:
        try:
            await self.gateway.delete_channel(channel_id)
        except GatewayError as exc:
            logger.debug("Cleanup of channel %s failed: %s", channel_id, exc)

    # --- Signature verification -----------------------------------------------------
    async def verify_signature(self, user_id: str, signature: str) -> VerificationOutcome:
        """Check `signature` against the user's pending challenge and grant roles.

        Raises:
            NoActiveSessionError: No live session, or it was consumed concurrently.
            MalformedSignatureError: The signature could not be decoded or recovered.
            SignatureMismatchError: The recovered address differs from the claimed wallet.
        """
        session = self.sessions.get(user_id)
        if session is None:
            expired = self.sessions.pop_expired(user_id)
            if expired is not None:
                self.notifier.schedule_channel_deletion(expired.channel_id, delay=0)
            raise NoActiveSessionError()

        try:
            recovered = recover_signer(session.challenge, signature)
        except ValueError as exc:
            logger.info("Malformed signature from user %s: %s", user_id, exc)
            await self._record_failure(session)
            raise MalformedSignatureError() from exc

        if recovered != session.wallet:
            logger.info("Signature from user %s recovered %s, expected %s", user_id, recovered, session.wallet)
            attempts_left = await self._record_failure(session)
            raise SignatureMismatchError(attempts_left)

        consumed = self.sessions.consume(user_id, session.challenge)
        if consumed is None:
            raise NoActiveSessionError()

        try:
            lookup = await self.reputation.fetch_score(consumed.wallet)
            granted = await self.roles.grant_roles(self.gateway, user_id, lookup.score)
        except Exception:
            await self.notifier.notify_failure(
                consumed.channel_id,
                "Something went wrong while assigning roles. Please run /verify again later.",
            )
            raise

        await self.notifier.notify_success(consumed.channel_id, lookup.score, granted)
        logger.info(
            "User %s verified wallet %s (score %d, roles %s)",
            user_id,
            consumed.wallet,
            lookup.score,
            granted,
        )
        return VerificationOutcome(
            user_id=user_id,
            wallet=consumed.wallet,
            score=lookup.score,
            roles=granted,
            reputation_ok=lookup.ok,
        )

    async def _record_failure(self, session: VerificationSession) -> int:
        """Count a failed attempt; close the session when the budget is spent."""
        updated, closed = self.sessions.record_failure(
            session.user_id,
            session.challenge,
            self.max_signature_attempts,
        )
        if updated is None:
            return 0
        if closed:
            logger.warning(
                "User %s exhausted %d signature attempts; session closed",
                session.user_id,
                self.max_signature_attempts,
            )
            await self.notifier.notify_failure(
                session.channel_id,
                "Too many invalid signatures. Run /verify again after the cooldown.",
            )
            return 0
        return self.max_signature_attempts - updated.failed_attempts
