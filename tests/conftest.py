# tests/conftest.py
from __future__ import annotations

import os
from collections import defaultdict
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from itertools import count
from typing import Any

import httpx
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("BOT_TOKEN", "test-bot-token")
os.environ.setdefault("CLIENT_ID", "1111")
os.environ.setdefault("GUILD_ID", "2222")
os.environ.setdefault("WHITELIST_API_KEY", "whitelist-key")
os.environ.setdefault("EXTERNAL_URL", "https://verify.example/")
os.environ.setdefault("PASSPORT_API_KEY", "passport-key")
os.environ.setdefault("DISCORD_ENABLED", "false")

from covenant_gate.core.settings import RoleTier  # noqa: E402
from covenant_gate.main import app as fastapi_app  # noqa: E402
from covenant_gate.services.community import GatewayError  # noqa: E402
from covenant_gate.services.cooldown import CooldownGate  # noqa: E402
from covenant_gate.services.notifier import DeferredTasks, Notifier  # noqa: E402
from covenant_gate.services.reputation import ReputationClient, ReputationConfig  # noqa: E402
from covenant_gate.services.roles import RoleGrantEngine  # noqa: E402
from covenant_gate.services.sessions import SessionStore  # noqa: E402
from covenant_gate.services.verification import VerificationService  # noqa: E402
from covenant_gate.services.whitelist import WhitelistClient, WhitelistConfig  # noqa: E402

BASE_ROLE = "Covenant Verified Signatory"
HIGH_TIER_ROLE = "Chosen One"
LOW_TIER_ROLE = "O.G. HUMN"
TEST_TIERS = [RoleTier(threshold=70, role=HIGH_TIER_ROLE), RoleTier(threshold=20, role=LOW_TIER_ROLE)]
EXTERNAL_URL = "https://verify.example"
WHITELIST_URL = "https://registry.example/signers-export"
REPUTATION_URL = "https://scores.example/score"
BOT_IDENTITY = "bot"

_CHANNEL_IDS = count(9000)


@dataclass
class FakeChannel:
    """Private channel recorded by the fake gateway."""

    channel_id: str
    name: str
    visible_to: set[str]
    messages: list[str] = field(default_factory=list)


class FakeGateway:
    """In-memory community space implementing `CommunityGateway`."""

    def __init__(self, catalog: set[str] | None = None) -> None:
        self.catalog = set(catalog if catalog is not None else {BASE_ROLE, HIGH_TIER_ROLE, LOW_TIER_ROLE})
        self.held: dict[str, set[str]] = defaultdict(set)
        self.channels: dict[str, FakeChannel] = {}
        self.deleted: list[str] = []
        self.add_calls: list[tuple[str, str]] = []
        self.fail_create = False
        self.fail_send = False
        self.fail_delete = False
        self.fail_roles: set[str] = set()
        self.fail_member_lookup = False

    async def create_private_channel(self, user_id: str, display_name: str) -> str:
        if self.fail_create:
            raise GatewayError("Missing Permissions")
        channel_id = str(next(_CHANNEL_IDS))
        self.channels[channel_id] = FakeChannel(
            channel_id=channel_id,
            name=f"verify-{display_name}",
            visible_to={user_id, BOT_IDENTITY},
        )
        return channel_id

    async def send_message(self, channel_id: str, content: str) -> None:
        if self.fail_send:
            raise GatewayError("Cannot send messages")
        self.channels[channel_id].messages.append(content)

    async def delete_channel(self, channel_id: str) -> None:
        if self.fail_delete:
            raise GatewayError("Unknown Channel")
        self.deleted.append(channel_id)

    async def role_catalog(self) -> set[str]:
        return set(self.catalog)

    async def member_roles(self, user_id: str) -> set[str]:
        if self.fail_member_lookup:
            raise GatewayError("Unknown Member")
        return set(self.held[user_id])

    async def add_role(self, user_id: str, role_name: str) -> None:
        self.add_calls.append((user_id, role_name))
        if role_name in self.fail_roles:
            raise GatewayError("Missing Permissions")
        self.held[user_id].add(role_name)


def whitelist_record(wallet: str, covenant: str = "SIGNED", humanity: str = "VERIFIED") -> dict[str, Any]:
    return {"walletAddress": wallet, "covenantStatus": covenant, "humanityStatus": humanity}


def sign_text(private_key: bytes, message: str) -> str:
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    return signed.signature.hex()


@dataclass
class RegistryStub:
    """Mutable backing data for the mocked registry and reputation APIs."""

    signers: list[dict[str, Any]] = field(default_factory=list)
    scores: dict[str, Any] = field(default_factory=dict)
    whitelist_status: int = 200
    whitelist_down: bool = False
    reputation_down: bool = False
    requests: list[httpx.Request] = field(default_factory=list)

    def whitelist_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.whitelist_down:
            raise httpx.ConnectError("registry unreachable", request=request)
        return httpx.Response(self.whitelist_status, json={"signers": self.signers})

    def reputation_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.reputation_down:
            raise httpx.ConnectError("scores unreachable", request=request)
        wallet = request.url.path.rsplit("/", 1)[-1]
        if wallet not in self.scores:
            return httpx.Response(404, json={"detail": "not found"})
        return httpx.Response(200, json=self.scores[wallet])


@pytest.fixture()
def account() -> Any:
    """A fresh wallet the test user controls."""
    return Account.create()


@pytest.fixture()
def other_account() -> Any:
    return Account.create()


@pytest.fixture()
def wallet(account: Any) -> str:
    return account.address.lower()


@pytest.fixture()
def registry(wallet: str) -> RegistryStub:
    """Registry with the test wallet eligible and no reputation score."""
    return RegistryStub(signers=[whitelist_record(wallet)])


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def whitelist_client(registry: RegistryStub) -> WhitelistClient:
    return WhitelistClient(
        WhitelistConfig(url=WHITELIST_URL, api_key="whitelist-key", timeout_seconds=1.0),
        transport=httpx.MockTransport(registry.whitelist_handler),
    )


@pytest.fixture()
def reputation_client(registry: RegistryStub) -> ReputationClient:
    return ReputationClient(
        ReputationConfig(url=REPUTATION_URL, api_key="passport-key", timeout_seconds=1.0),
        transport=httpx.MockTransport(registry.reputation_handler),
    )


@pytest.fixture()
def service_factory(
    gateway: FakeGateway,
    whitelist_client: WhitelistClient,
    reputation_client: ReputationClient,
) -> Callable[..., VerificationService]:
    """Build a verification service around the fakes, with overridable knobs."""

    def _build(
        *,
        cooldown_seconds: int = 300,
        session_ttl_seconds: float = 900.0,
        max_attempts: int = 3,
        delete_delay: float = 0.0,
    ) -> VerificationService:
        return VerificationService(
            gateway=gateway,
            whitelist=whitelist_client,
            reputation=reputation_client,
            cooldowns=CooldownGate(cooldown_seconds),
            sessions=SessionStore(session_ttl_seconds),
            roles=RoleGrantEngine(BASE_ROLE, TEST_TIERS),
            notifier=Notifier(gateway, delete_delay_seconds=delete_delay, tasks=DeferredTasks()),
            external_url=EXTERNAL_URL,
            max_signature_attempts=max_attempts,
        )

    return _build


@pytest.fixture()
def service(service_factory: Callable[..., VerificationService]) -> VerificationService:
    return service_factory()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, service: VerificationService) -> Iterator[TestClient]:
    """HTTP client bound to the fake-backed service (lifespan not started)."""
    app.state.verification_service = service
    try:
        yield TestClient(app, base_url="http://test")
    finally:
        app.state.verification_service = None
