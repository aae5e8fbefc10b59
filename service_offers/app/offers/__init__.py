"""
Offer catalog, discount selection and the engine that ties them together.
"""
