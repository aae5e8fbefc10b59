"""
Adapters for external collaborators of the Offers service.
"""
