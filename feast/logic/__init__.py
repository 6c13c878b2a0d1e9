"""Core business logic layer.

Subpackages:
- pricing: unit and price normalization, exchange-rate tables
- shopping: ingredient aggregation and grocery lists
- recovery: repairing and salvaging generated JSON
- sourcing: tiered meal sourcing and the fallback catalogue
- planning: weekly plan assembly
- reporting: nutrition summaries
"""
__all__ = ["pricing", "shopping", "recovery", "sourcing", "planning", "reporting"]
