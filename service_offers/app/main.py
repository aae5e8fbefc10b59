"""
Cart Offer service: offer catalog and checkout discounts.
"""

from typing import Dict, Any, Optional

import httpx
from fastapi import Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.logging import set_user_context

from .access.gate import AccessGate, APPLY_OFFER_ENDPOINT
from .adapters.segment_client import SegmentClient
from .offers.engine import OfferEngine
from .offers.models import (
    OfferCreateRequest, OfferCreateResponse, CartRequest, CartResponse, UserOffersResponse
)
from .offers.store import OfferStore
from .ratelimit.token_bucket import TokenBucketRateLimiter


ROLE_HEADER = "user_role"
CALLER_HEADER = "user_id"


class OfferService(BaseService):
    """Offer service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 segment_transport: Optional[httpx.AsyncBaseTransport] = None,
                 store: Optional[OfferStore] = None,
                 rate_limiter: Optional[TokenBucketRateLimiter] = None):
        super().__init__("offers", 9001, config=config)

        self.store = store or OfferStore()
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter(
            capacity=self.config.rate_limit_capacity,
            refill_rate=self.config.rate_limit_refill_per_second
        )
        self.segment_client = SegmentClient(
            self.config.segment_service_url,
            timeout=self.config.segment_timeout_seconds,
            failure_threshold=self.config.segment_breaker_failure_threshold,
            recovery_timeout=self.config.segment_breaker_recovery_seconds,
            transport=segment_transport,
            metrics=self.metrics
        )
        self.gate = AccessGate(
            self.rate_limiter,
            default_role=self.config.default_role,
            metrics=self.metrics
        )
        self.engine = OfferEngine(
            self.store,
            self.segment_client,
            self.gate,
            metrics=self.metrics,
            allow_segment_simulation=self.config.allow_segment_simulation
        )

        self._setup_offer_routes()

        self.app.state.offer_service = self

    def _setup_offer_routes(self):
        """Set up offer-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "offers",
                "message": "Cart Offer Service",
                "version": "1.0.0",
                "capabilities": ["offer_catalog", "discount_selection", "rbac", "rate_limiting"]
            }

        @self.app.post("/api/v1/offer", response_model=OfferCreateResponse)
        async def add_offer(body: OfferCreateRequest, request: Request):
            """Add an offer for a restaurant."""
            self.engine.add_offer(request.headers.get(ROLE_HEADER), body)
            return OfferCreateResponse()

        @self.app.post("/api/v1/cart/apply_offer", response_model=CartResponse)
        async def apply_offer(body: CartRequest, request: Request, response: Response):
            """Apply the best eligible offer to a cart."""
            set_user_context(str(body.user_id))
            client_id = self._get_client_id(request)
            result = await self.engine.apply_offer(request.headers.get(ROLE_HEADER), body, client_id=client_id)
            self._set_rate_limit_headers(response, client_id)
            return CartResponse(cart_value=result.final_cart_value)

        @self.app.get("/api/v1/offer/{user_id}", response_model=UserOffersResponse)
        async def get_user_offers(user_id: int, request: Request):
            """List the offers a user is currently eligible for."""
            set_user_context(str(user_id))
            resolution, offers = await self.engine.offers_for_user(
                request.headers.get(ROLE_HEADER),
                request.headers.get(CALLER_HEADER),
                user_id
            )
            return UserOffersResponse(
                user_id=user_id,
                segment=resolution.label,
                offers=[offer.to_dict() for offer in offers]
            )

    def _set_rate_limit_headers(self, response: Response, client_id: str) -> None:
        """Propagate rate limiting metadata via standard headers."""
        status = self.rate_limiter.get_rate_limit_status(client_id, APPLY_OFFER_ENDPOINT)
        response.headers["X-RateLimit-Limit"] = str(status["limit"])
        response.headers["X-RateLimit-Remaining"] = str(status["remaining"])

    def _get_client_id(self, request: Request) -> str:
        """Extract the caller identity used for rate limiting."""
        client_id = request.headers.get("X-Client-ID")
        if client_id:
            return client_id.strip()

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client and request.client.host:
            return request.client.host
        return "global"

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {
            "segment_service": self.segment_client.circuit_breaker.get_state()["state"],
            "store": self.store.get_store_stats(),
            "rate_limiter": self.rate_limiter.get_global_stats()
        }


def create_app(**kwargs):
    """Create offer service application."""
    service = OfferService(**kwargs)
    return service.app


if __name__ == "__main__":
    service = OfferService()
    service.run()
