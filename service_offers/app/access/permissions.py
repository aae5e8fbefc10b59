"""
Role and permission table for the Offers service.
"""

from enum import Enum
from typing import Optional, FrozenSet, Dict


class Role(str, Enum):
    """Caller roles."""
    ADMIN = "admin"
    CUSTOMER = "customer"
    GUEST = "guest"
    UNAUTHORIZED = "unauthorized"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["Role"]:
        if raw is None:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class Operation(str, Enum):
    """Protected operations."""
    ADD_OFFER = "add_offer"
    APPLY_OFFER = "apply_offer"
    VIEW_OFFERS = "view_offers"


# Roles that carry no authenticated identity
UNAUTHENTICATED_ROLES: FrozenSet[Role] = frozenset({Role.UNAUTHORIZED})

PERMISSIONS: Dict[Role, FrozenSet[Operation]] = {
    Role.ADMIN: frozenset({Operation.ADD_OFFER, Operation.VIEW_OFFERS}),
    Role.CUSTOMER: frozenset({Operation.APPLY_OFFER, Operation.VIEW_OFFERS}),
    Role.GUEST: frozenset(),
    Role.UNAUTHORIZED: frozenset(),
}


def is_allowed(role: Role, operation: Operation) -> bool:
    """Look up a role/operation pair in the permission table."""
    return operation in PERMISSIONS.get(role, frozenset())
