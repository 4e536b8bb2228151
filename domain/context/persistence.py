"""
Pure functions mapping the live context to its persisted form and back.

Only the identifying fields of the current selection are persisted; available
lists, loading flags and errors never are. On rehydration the ids are resolved
against freshly fetched lists, so a stale id simply resolves to None.
"""

import logging
from collections.abc import Sequence
from typing import Any

from domain.schemas import EnhancedLocation, EnhancedOrganization, TaxonomyContext, TaxonomyEntity, TaxonomySelection

logger = logging.getLogger(__name__)

_PERSISTED_FIELDS = ("id", "name", "title")


def _entity_stub(entity: TaxonomyEntity | None) -> dict[str, Any] | None:
    if entity is None:
        return None
    return entity.model_dump(include=set(_PERSISTED_FIELDS), exclude_none=True)


def serialize_selection(context: TaxonomyContext) -> dict[str, Any]:
    """Return `{"context": {"organization": {...}|None, "location": {...}|None}}`."""
    return {
        "context": {
            "organization": _entity_stub(context.organization),
            "location": _entity_stub(context.location),
        }
    }


def _persisted_id(block: Any, key: str) -> int | None:
    entity = block.get(key) if isinstance(block, dict) else None
    if not isinstance(entity, dict):
        return None
    raw = entity.get("id")
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        return None
    return raw


def rehydrate_selection(
    persisted: dict[str, Any] | None,
    available_organizations: Sequence[EnhancedOrganization],
    available_locations: Sequence[EnhancedLocation],
) -> TaxonomySelection:
    """Resolve persisted ids against the current lists; unknown or malformed entries become None."""
    if not isinstance(persisted, dict):
        return TaxonomySelection()

    block = persisted.get("context")
    org_id = _persisted_id(block, "organization")
    loc_id = _persisted_id(block, "location")

    if org_id is not None and org_id not in {o.id for o in available_organizations}:
        logger.info("Persisted organization %d is no longer available; dropping it", org_id)
        org_id = None
    if loc_id is not None and loc_id not in {loc.id for loc in available_locations}:
        logger.info("Persisted location %d is no longer available; dropping it", loc_id)
        loc_id = None

    return TaxonomySelection(organization_id=org_id, location_id=loc_id)
