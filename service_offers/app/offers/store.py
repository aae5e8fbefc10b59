"""
In-memory offer catalog for the Cart Offer service.
"""

import threading
from typing import Dict, Any, List, Tuple

from shared.logging import get_logger
from shared.errors import ValidationError
from .models import Offer


class OfferStore:
    """Offers keyed by restaurant, kept in insertion order.

    Writers serialize on a lock and publish a fresh tuple per restaurant, so
    readers always see a complete snapshot without locking.
    """

    def __init__(self):
        self.logger = get_logger("offers.store")
        self._offers: Dict[int, Tuple[Offer, ...]] = {}
        self._lock = threading.Lock()

    def add_offer(self, offer: Offer) -> Offer:
        """Validate and append an offer to its restaurant."""
        self._validate(offer)

        with self._lock:
            current = self._offers.get(offer.restaurant_id, ())
            self._offers[offer.restaurant_id] = current + (offer,)
            count = len(current) + 1

        self.logger.info(
            "Offer added",
            restaurant_id=offer.restaurant_id,
            offer_type=str(offer.to_dict()["offer_type"]),
            discount=offer.discount_value,
            offers_for_restaurant=count
        )
        return offer

    def get_offers(self, restaurant_id: int) -> Tuple[Offer, ...]:
        """Get offers for a restaurant; empty when none exist."""
        return self._offers.get(restaurant_id, ())

    def all_offers(self) -> List[Offer]:
        """Get every stored offer, grouped by restaurant."""
        snapshot = list(self._offers.values())
        return [offer for offers in snapshot for offer in offers]

    def get_store_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        snapshot = list(self._offers.values())
        return {
            "restaurants": len(snapshot),
            "offers": sum(len(offers) for offers in snapshot)
        }

    def _validate(self, offer: Offer):
        errors: Dict[str, str] = {}

        if not isinstance(offer.restaurant_id, int) or isinstance(offer.restaurant_id, bool):
            errors["restaurant_id"] = "restaurant_id is required"

        if not isinstance(offer.offer_type, str) or not offer.offer_type.strip():
            errors["offer_type"] = "offer_type is required"

        if not isinstance(offer.discount_value, int) or isinstance(offer.discount_value, bool):
            errors["discount"] = "discount is required"
        elif offer.discount_value < 0:
            errors["discount"] = "discount must not be negative"

        if not offer.segments:
            errors["segments"] = "at least one segment is required"
        elif any(not isinstance(s, str) or not s.strip() for s in offer.segments):
            errors["segments"] = "segments must be non-empty strings"

        if errors:
            raise ValidationError("Invalid offer", details=errors)
