"""
Taxonomy context: the current organization/location selection and its invariants.

Contains:
- store: TaxonomyStore state container (snapshot replacement + subscriptions)
- validation: membership checks for a selection
- persistence: pure serialize/rehydrate functions for the persisted selection
"""

from domain.context.persistence import rehydrate_selection, serialize_selection
from domain.context.store import TaxonomyState, TaxonomyStore
from domain.context.validation import validate_selection

__all__ = [
    "TaxonomyStore",
    "TaxonomyState",
    "validate_selection",
    "serialize_selection",
    "rehydrate_selection",
]
