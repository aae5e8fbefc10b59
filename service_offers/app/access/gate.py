"""
Access gate for the Offers service: role checks and request budgets.
"""

from typing import Dict, Any, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import AuthenticationMissing, AuthorizationDenied, RateLimited
from ..ratelimit.token_bucket import TokenBucketRateLimiter
from .permissions import Role, Operation, UNAUTHENTICATED_ROLES, is_allowed


GLOBAL_CLIENT_ID = "global"
APPLY_OFFER_ENDPOINT = "/api/v1/cart/apply_offer"


class AccessGate:
    """Stateless per-request access checks in front of the offer engine."""

    def __init__(self, rate_limiter: TokenBucketRateLimiter, default_role: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.rate_limiter = rate_limiter
        self.default_role = default_role
        self.metrics = metrics
        self.logger = get_logger("offers.access_gate")

    def authenticate(self, raw_role: Optional[str]) -> Role:
        """Turn the role header into a known, authenticated role."""
        if raw_role is None or not raw_role.strip():
            raw_role = self.default_role

        role = Role.parse(raw_role)
        if role is None or role in UNAUTHENTICATED_ROLES:
            self.logger.info("Authentication missing", role=raw_role)
            raise AuthenticationMissing(
                "Valid user_role header required",
                details={"role": raw_role}
            )
        return role

    def authorize(self, raw_role: Optional[str], operation: Operation) -> Role:
        """Authenticate the caller and check the permission table."""
        role = self.authenticate(raw_role)
        if not is_allowed(role, operation):
            self.logger.info("Authorization denied", role=role.value, operation=operation.value)
            raise AuthorizationDenied(
                f"Role '{role.value}' may not {operation.value.replace('_', ' ')}",
                details={"role": role.value, "operation": operation.value}
            )
        return role

    def check_add(self, raw_role: Optional[str]) -> Role:
        return self.authorize(raw_role, Operation.ADD_OFFER)

    def check_apply(self, raw_role: Optional[str], client_id: Optional[str] = None) -> Dict[str, Any]:
        """Authorize apply-offer and spend one token from the caller's budget."""
        self.authorize(raw_role, Operation.APPLY_OFFER)

        result = self.rate_limiter.check_rate_limit(client_id or GLOBAL_CLIENT_ID, APPLY_OFFER_ENDPOINT)
        if not result.get("allowed", False):
            if self.metrics is not None:
                self.metrics.increment_counter("rate_limit_hits_total", endpoint=APPLY_OFFER_ENDPOINT)
            raise RateLimited(
                retry_after=result.get("retry_after", 1),
                details={
                    "limit": result.get("limit"),
                    "reset_in_seconds": result.get("reset_in_seconds")
                }
            )
        return result

    def check_view(self, raw_role: Optional[str], caller_id: Optional[str], user_id: int) -> Optional[Role]:
        """Allow admins to view anyone's offers and users to view their own."""
        role = None
        if raw_role is not None and raw_role.strip():
            role = self.authenticate(raw_role)
            if role == Role.ADMIN:
                return role

        if caller_id is None or not caller_id.strip():
            raise AuthenticationMissing("user_id header required")

        if caller_id.strip() != str(user_id):
            self.logger.info("Cross-user offer access denied", caller_id=caller_id, user_id=user_id)
            raise AuthorizationDenied(
                "Cannot view offers of another user",
                details={"user_id": user_id}
            )

        if role is not None and not is_allowed(role, Operation.VIEW_OFFERS):
            raise AuthorizationDenied(
                f"Role '{role.value}' may not view offers",
                details={"role": role.value, "operation": Operation.VIEW_OFFERS.value}
            )
        return role
