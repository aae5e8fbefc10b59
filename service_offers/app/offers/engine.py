"""
Offer evaluation engine: access gate, catalog, segment lookup and selection.
"""

from typing import List, Optional, Tuple

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import ValidationError
from ..access.gate import AccessGate
from ..adapters.segment_client import SegmentClient
from .models import Offer, OfferCreateRequest, CartRequest, DiscountResult, SegmentResolution
from .selector import DiscountSelector
from .store import OfferStore


class OfferEngine:
    """Orchestrates the add-offer and apply-offer flows.

    The gate always runs first so rejected requests never touch the store
    or the segment service.
    """

    def __init__(self, store: OfferStore, segment_client: SegmentClient, gate: AccessGate,
                 selector: Optional[DiscountSelector] = None,
                 metrics: Optional[MetricsCollector] = None,
                 allow_segment_simulation: bool = True):
        self.store = store
        self.segment_client = segment_client
        self.gate = gate
        self.selector = selector or DiscountSelector()
        self.metrics = metrics
        self.allow_segment_simulation = allow_segment_simulation
        self.logger = get_logger("offers.engine")

    def add_offer(self, role: Optional[str], request: OfferCreateRequest) -> Offer:
        self.gate.check_add(role)
        offer = self.store.add_offer(request.to_offer())

        if self.metrics is not None:
            offer_type = offer.kind.name if offer.kind else "UNRECOGNIZED"
            self.metrics.increment_counter("offers_added_total", offer_type=offer_type)
        return offer

    async def apply_offer(self, role: Optional[str], cart: CartRequest,
                          client_id: Optional[str] = None) -> DiscountResult:
        self.gate.check_apply(role, client_id)
        if cart.cart_value < 0:
            raise ValidationError("cart_value must not be negative", details={"cart_value": cart.cart_value})

        resolution = await self._resolve(cart.user_id, cart.simulate_segment_null)
        offers = self.store.get_offers(cart.restaurant_id)
        result = self.selector.select_best_discount(cart.cart_value, offers, resolution.label)

        self.logger.info(
            "Offer evaluated",
            user_id=cart.user_id,
            restaurant_id=cart.restaurant_id,
            segment=resolution.label,
            candidates=len(offers),
            cart_value=result.cart_value,
            discount=result.discount,
            final_cart_value=result.final_cart_value
        )
        if self.metrics is not None:
            self.metrics.increment_counter("offers_applied_total", outcome="applied" if result.applied else "none")
            self.metrics.observe_histogram("discount_amount", result.discount)
        return result

    async def offers_for_user(self, role: Optional[str], caller_id: Optional[str],
                              user_id: int) -> Tuple[SegmentResolution, List[Offer]]:
        """Offers across all restaurants that the user's segment is eligible for."""
        self.gate.check_view(role, caller_id, user_id)

        resolution = await self._resolve(user_id)
        if not resolution.is_resolved:
            return resolution, []
        return resolution, [o for o in self.store.all_offers() if o.applies_to(resolution.label)]

    async def _resolve(self, user_id: int, simulate_null: bool = False) -> SegmentResolution:
        if simulate_null and self.allow_segment_simulation:
            return SegmentResolution.unresolved("simulated")
        return await self.segment_client.resolve_segment(user_id)
