"""
Offers Service package for the Cart Offer system.

This package stores restaurant offers and applies the best eligible one to
a cart at checkout. It provides:

- app.main: API surface for adding offers, applying them, and health.
- app.offers: Offer model, in-memory store, discount selector and engine.
- app.access: Permission table and the access gate.
- app.ratelimit: Token-bucket limiter for apply-offer.
- app.adapters: Client for the external user segment service.

Guidelines:
- State is process-local; the store is injected, never a module global.
- Segment lookup failures degrade to "no offer", never to an error.
- Keep discount selection pure and deterministic.
"""
