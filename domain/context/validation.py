"""Membership checks for a taxonomy selection."""

from collections.abc import Sequence

from domain.schemas import EnhancedLocation, EnhancedOrganization, TaxonomySelection, TaxonomyValidation

INVALID_ORGANIZATION = "Cannot set organization that is not in available organizations"
INVALID_LOCATION = "Cannot set location that is not in available locations"


def validate_selection(
    selection: TaxonomySelection,
    available_organizations: Sequence[EnhancedOrganization],
    available_locations: Sequence[EnhancedLocation],
) -> TaxonomyValidation:
    """
    Check that selected ids belong to the available sets.

    A location that declares its organizations but not the selected one only
    produces a warning; the selection is still valid.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if selection.organization_id is not None:
        if selection.organization_id not in {o.id for o in available_organizations}:
            errors.append("Selected organization is not available or does not exist")

    location = None
    if selection.location_id is not None:
        location = next((loc for loc in available_locations if loc.id == selection.location_id), None)
        if location is None:
            errors.append("Selected location is not available or does not exist")

    if selection.organization_id is not None and location is not None and location.organizations:
        if selection.organization_id not in {o.id for o in location.organizations}:
            warnings.append("Selected location may not be available in the selected organization")

    return TaxonomyValidation(is_valid=not errors, errors=errors, warnings=warnings)
