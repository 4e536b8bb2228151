"""
Application layer: Use cases and workflow orchestration.

This layer coordinates between domain logic and infrastructure,
implementing the taxonomy context workflows (load, rehydrate, select, switch).
"""

from application.taxonomy_service import TaxonomyService

__all__ = [
    "TaxonomyService",
]
