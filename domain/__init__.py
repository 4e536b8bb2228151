"""
Domain layer: taxonomy business logic with no I/O.

Contains:
- schemas: Pydantic models for entities, context snapshots and API envelopes
- identifiers: GraphQL identifier resolution
- hierarchy: forest construction and ancestor/descendant queries
- context: the taxonomy context store and its persistence functions
"""

from domain.errors import CycleDetected, InvalidIdentifier, InvalidSelection, TaxonomyError, TransportExhausted
from domain.identifiers import resolve_identifier
from domain.schemas import (
    EnhancedLocation,
    EnhancedOrganization,
    PaginatedResponse,
    TaxonomyContext,
    TaxonomyEntity,
    TaxonomyPermissions,
    TaxonomySelection,
    TaxonomyTreeNode,
)

__all__ = [
    # Entities
    "TaxonomyEntity",
    "EnhancedOrganization",
    "EnhancedLocation",
    "TaxonomyTreeNode",
    # Context
    "TaxonomyContext",
    "TaxonomySelection",
    "TaxonomyPermissions",
    "PaginatedResponse",
    # Identifiers
    "resolve_identifier",
    # Errors
    "TaxonomyError",
    "InvalidIdentifier",
    "InvalidSelection",
    "TransportExhausted",
    "CycleDetected",
]
