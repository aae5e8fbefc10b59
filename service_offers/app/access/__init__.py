"""
Access control for the Offers service.

The permission table maps (role, operation) pairs to allow/deny; the gate
combines it with the apply-offer rate limiter.
"""
