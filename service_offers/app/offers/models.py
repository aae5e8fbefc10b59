"""
Offer data models for the Cart Offer service.
"""

from typing import Dict, Any, Optional, List, FrozenSet, Iterable, Union
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, AliasChoices, ConfigDict


UNKNOWN_SEGMENT = "unknown"


class OfferType(str, Enum):
    """Offer types. Values are the canonical wire spellings."""
    FLAT = "FLATX"
    PERCENT = "FLATX%"

    @classmethod
    def parse(cls, raw: Any) -> Optional["OfferType"]:
        """Map a wire value to an offer type, or None when unrecognized."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        return _OFFER_TYPE_ALIASES.get(raw.strip().upper())


_OFFER_TYPE_ALIASES = {
    "FLATX": OfferType.FLAT,
    "FLAT": OfferType.FLAT,
    "FLATX%": OfferType.PERCENT,
    "PERCENT": OfferType.PERCENT,
}


@dataclass(frozen=True)
class Offer:
    """A discount offered by a restaurant to one or more user segments.

    ``offer_type`` holds an ``OfferType`` when the wire value was recognized
    and the raw string otherwise; the latter is kept but never selected.
    """
    restaurant_id: int
    offer_type: Union[OfferType, str]
    discount_value: int
    segments: FrozenSet[str]

    @classmethod
    def create(cls, restaurant_id: int, offer_type: Any, discount_value: int,
               segments: Iterable[str]) -> "Offer":
        return cls(
            restaurant_id=restaurant_id,
            offer_type=OfferType.parse(offer_type) or offer_type,
            discount_value=discount_value,
            segments=frozenset(segments or ()),
        )

    @property
    def kind(self) -> Optional[OfferType]:
        return OfferType.parse(self.offer_type)

    def applies_to(self, segment: str) -> bool:
        return segment in self.segments

    def to_dict(self) -> Dict[str, Any]:
        offer_type = self.offer_type.value if isinstance(self.offer_type, OfferType) else self.offer_type
        return {
            "restaurant_id": self.restaurant_id,
            "offer_type": offer_type,
            "discount": self.discount_value,
            "segments": sorted(self.segments),
        }


@dataclass(frozen=True)
class SegmentResolution:
    """Outcome of a segment lookup: a resolved label or an unresolved reason."""
    segment: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def resolved(cls, label: str) -> "SegmentResolution":
        return cls(segment=label)

    @classmethod
    def unresolved(cls, reason: str) -> "SegmentResolution":
        return cls(reason=reason)

    @property
    def is_resolved(self) -> bool:
        return self.segment is not None

    @property
    def label(self) -> str:
        return self.segment if self.segment is not None else UNKNOWN_SEGMENT


@dataclass(frozen=True)
class DiscountResult:
    """Result of evaluating a cart against the applicable offers."""
    cart_value: int
    discount: int
    final_cart_value: int
    offer: Optional[Offer] = None

    @property
    def applied(self) -> bool:
        return self.offer is not None


class OfferCreateRequest(BaseModel):
    """Request model for adding an offer.

    Accepts both snake_case and camelCase keys.
    """
    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("restaurant_id", "restaurantId"), description="Restaurant ID"
    )
    offer_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("offer_type", "offerType"), description="FLATX or FLATX%"
    )
    discount: Optional[int] = Field(
        None, validation_alias=AliasChoices("discount", "discount_value", "discountValue"),
        description="Flat amount or percentage"
    )
    segments: List[str] = Field(default_factory=list, description="Eligible user segments")

    def to_offer(self) -> Offer:
        return Offer.create(self.restaurant_id, self.offer_type, self.discount, self.segments)


class OfferCreateResponse(BaseModel):
    """Response model for adding an offer."""
    response_msg: str = "success"


class CartRequest(BaseModel):
    """Request model for applying the best offer to a cart."""
    model_config = ConfigDict(populate_by_name=True)

    cart_value: int = Field(..., validation_alias=AliasChoices("cart_value", "cartValue"))
    user_id: int = Field(..., validation_alias=AliasChoices("user_id", "userId"))
    restaurant_id: int = Field(..., validation_alias=AliasChoices("restaurant_id", "restaurantId"))
    simulate_segment_null: bool = Field(False, description="Force an unresolved segment lookup")


class CartResponse(BaseModel):
    """Response model for apply-offer."""
    cart_value: int


class UserOffersResponse(BaseModel):
    """Response model for the offers visible to a user."""
    user_id: int
    segment: str
    offers: List[Dict[str, Any]] = Field(default_factory=list)
