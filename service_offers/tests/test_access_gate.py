"""
Unit tests for AccessGate and the permission table.
"""

import pytest
from unittest.mock import MagicMock

from service_offers.app.access.gate import AccessGate, GLOBAL_CLIENT_ID, APPLY_OFFER_ENDPOINT
from service_offers.app.access.permissions import Role, Operation, PERMISSIONS, is_allowed
from service_offers.app.ratelimit.token_bucket import TokenBucketRateLimiter
from shared.errors import AuthenticationMissing, AuthorizationDenied, RateLimited


class TestPermissionTable:
    """Test cases for the role/operation table."""

    @pytest.mark.parametrize("role, operation, allowed", [
        (Role.ADMIN, Operation.ADD_OFFER, True),
        (Role.ADMIN, Operation.APPLY_OFFER, False),
        (Role.CUSTOMER, Operation.APPLY_OFFER, True),
        (Role.CUSTOMER, Operation.ADD_OFFER, False),
        (Role.GUEST, Operation.ADD_OFFER, False),
        (Role.GUEST, Operation.APPLY_OFFER, False),
        (Role.UNAUTHORIZED, Operation.APPLY_OFFER, False),
    ])
    def test_is_allowed(self, role, operation, allowed):
        assert is_allowed(role, operation) is allowed

    def test_every_role_has_an_entry(self):
        assert set(PERMISSIONS) == set(Role)

    def test_role_parse(self):
        assert Role.parse(" Admin ") == Role.ADMIN
        assert Role.parse("superuser") is None
        assert Role.parse(None) is None


class TestAccessGate:
    """Test cases for AccessGate."""

    @pytest.fixture
    def rate_limiter(self):
        return TokenBucketRateLimiter(capacity=2, refill_rate=0.001)

    @pytest.fixture
    def gate(self, rate_limiter):
        """Create AccessGate instance."""
        return AccessGate(rate_limiter)

    def test_admin_can_add(self, gate):
        assert gate.check_add("admin") == Role.ADMIN

    def test_guest_cannot_add(self, gate):
        with pytest.raises(AuthorizationDenied):
            gate.check_add("guest")

    def test_unauthorized_role_is_unauthenticated(self, gate):
        with pytest.raises(AuthenticationMissing):
            gate.check_add("unauthorized")

    @pytest.mark.parametrize("raw_role", [None, "", "   ", "superuser"])
    def test_missing_or_invalid_role(self, gate, raw_role):
        with pytest.raises(AuthenticationMissing):
            gate.check_apply(raw_role, "client")

    def test_default_role_applies_when_header_missing(self, rate_limiter):
        gate = AccessGate(rate_limiter, default_role="customer")

        result = gate.check_apply(None, "client")

        assert result["allowed"] is True

    def test_customer_can_apply_until_budget_exhausted(self, gate):
        gate.check_apply("customer", "client")
        gate.check_apply("customer", "client")

        with pytest.raises(RateLimited) as exc_info:
            gate.check_apply("customer", "client")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after >= 1

    def test_denied_requests_do_not_spend_budget(self):
        rate_limiter = MagicMock()
        gate = AccessGate(rate_limiter)

        with pytest.raises(AuthorizationDenied):
            gate.check_apply("guest", "client")

        rate_limiter.check_rate_limit.assert_not_called()

    def test_missing_client_uses_global_bucket(self):
        rate_limiter = MagicMock()
        rate_limiter.check_rate_limit.return_value = {"allowed": True}
        gate = AccessGate(rate_limiter)

        gate.check_apply("customer", None)

        rate_limiter.check_rate_limit.assert_called_once_with(GLOBAL_CLIENT_ID, APPLY_OFFER_ENDPOINT)

    def test_view_own_offers(self, gate):
        assert gate.check_view(None, "1", 1) is None
        assert gate.check_view("customer", "1", 1) == Role.CUSTOMER

    def test_view_other_users_offers_denied(self, gate):
        with pytest.raises(AuthorizationDenied):
            gate.check_view(None, "1", 2)

    def test_admin_views_any_user(self, gate):
        assert gate.check_view("admin", None, 2) == Role.ADMIN

    def test_view_without_caller_id(self, gate):
        with pytest.raises(AuthenticationMissing):
            gate.check_view(None, None, 2)

    def test_guest_cannot_view(self, gate):
        with pytest.raises(AuthorizationDenied):
            gate.check_view("guest", "1", 1)
