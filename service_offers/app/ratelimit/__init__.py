"""
Rate limiting package for the Offers service.

Holds the in-process token-bucket limiter that enforces per-client request
budgets with burst tolerance on apply-offer.
"""
