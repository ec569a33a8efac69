"""Tiered role grants for verified signatories."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from covenant_gate.core.settings import RoleTier, settings
from covenant_gate.services.community import CommunityGateway, GatewayError

# Configure logger for this module
logger = logging.getLogger(__name__)


class RoleGrantEngine:
    """Maps a reputation score to roles and applies them idempotently.

    The base role is granted to every verified signatory. Each tier is checked
    independently, highest threshold first, so a high score earns every tier
    it clears.
    """

    def __init__(self, base_role: str, tiers: Iterable[RoleTier]) -> None:
        self.base_role = base_role
        self.tiers = sorted(tiers, key=lambda tier: tier.threshold, reverse=True)

    def eligible_roles(self, score: int) -> list[str]:
        """Return the role names `score` qualifies for, without duplicates."""
        names = [self.base_role]
        names.extend(tier.role for tier in self.tiers if score >= tier.threshold)
        return list(dict.fromkeys(names))

    async def grant_roles(self, gateway: CommunityGateway, user_id: str, score: int) -> list[str]:
        """Grant every qualifying role that exists in the space.

        Roles missing from the catalog are logged and skipped; roles the member
        already holds are reported but not re-added. A role whose assignment
        is rejected by the platform is logged and left out of the report.

        Returns:
            Names of the roles the member holds as a result of this grant.
        """
        catalog = await gateway.role_catalog()
        held = await gateway.member_roles(user_id)
        granted: list[str] = []

        for name in self.eligible_roles(score):
            if name not in catalog:
                logger.warning("Role %r is not defined in the community; skipping", name)
                continue
            if name not in held:
                try:
                    await gateway.add_role(user_id, name)
                except GatewayError as exc:
                    logger.warning("Could not grant role %r to user %s: %s", name, user_id, exc)
                    continue
                held.add(name)
            granted.append(name)

        return granted


def get_role_engine() -> RoleGrantEngine:
    """Return a role engine built from the configured catalog."""
    return RoleGrantEngine(settings.base_role_name, settings.role_tiers)
