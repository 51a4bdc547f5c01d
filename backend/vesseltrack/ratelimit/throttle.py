"""Per-tenant, per-provider request budget."""

import logging
from typing import TYPE_CHECKING, Optional

from vesseltrack.ratelimit.limiter import RateDecision, RateLimiter, RateLimitRule
from vesseltrack.tenancy import TenantId

if TYPE_CHECKING:
    from vesseltrack.ais.adapters.base import ProviderAdapter

logger = logging.getLogger(__name__)


class ProviderThrottle:
    """Decides whether a tenant may issue another request to a provider.

    Ceilings are looked up by provider name; unknown providers use the
    default rule. A provider without credentials is always allowed through
    so the adapter can report ProviderNotConfiguredError itself.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        rules: Optional[dict[str, RateLimitRule]] = None,
        default_rule: RateLimitRule = RateLimitRule(limit=80, window_seconds=60),
    ):
        self.limiter = limiter
        self.rules = rules or {}
        self.default_rule = default_rule

    @staticmethod
    def key(tenant: TenantId, provider_name: str) -> str:
        return f"ais:{provider_name}:{tenant.value}"

    def rule_for(self, provider_name: str) -> RateLimitRule:
        return self.rules.get(provider_name, self.default_rule)

    async def try_acquire(
        self, tenant: TenantId, provider: "ProviderAdapter"
    ) -> RateDecision:
        if not provider.is_configured():
            return RateDecision.allow()

        decision = await self.limiter.hit(
            self.key(tenant, provider.name), self.rule_for(provider.name)
        )
        if not decision.allowed:
            logger.info(
                f"Provider budget exhausted for tenant {tenant} on {provider.name}, "
                f"retry after {decision.retry_after}s"
            )
        return decision
