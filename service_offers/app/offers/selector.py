"""
Best-discount selection for the Cart Offer service.
"""

from typing import Optional, Sequence

from shared.errors import ValidationError
from .models import Offer, OfferType, DiscountResult, UNKNOWN_SEGMENT


def discount_amount(offer: Offer, cart_value: int) -> Optional[int]:
    """Absolute discount an offer grants on a cart, or None for inert offers."""
    kind = offer.kind
    if kind == OfferType.FLAT:
        return offer.discount_value
    if kind == OfferType.PERCENT:
        return cart_value * offer.discount_value // 100
    return None


class DiscountSelector:
    """Pick the single best discount among the offers for a segment."""

    def select_best_discount(self, cart_value: int, offers: Sequence[Offer], segment: str) -> DiscountResult:
        if cart_value < 0:
            raise ValidationError("cart_value must not be negative", details={"cart_value": cart_value})

        no_discount = DiscountResult(cart_value=cart_value, discount=0, final_cart_value=cart_value)
        if segment == UNKNOWN_SEGMENT:
            return no_discount

        best_offer: Optional[Offer] = None
        best_amount = 0
        for offer in offers:
            if not offer.applies_to(segment):
                continue
            amount = discount_amount(offer, cart_value)
            # Strictly greater keeps the earliest offer on ties
            if amount is not None and amount > best_amount:
                best_offer, best_amount = offer, amount

        if best_offer is None:
            return no_discount

        discount = min(best_amount, cart_value)
        return DiscountResult(
            cart_value=cart_value,
            discount=discount,
            final_cart_value=cart_value - discount,
            offer=best_offer
        )
