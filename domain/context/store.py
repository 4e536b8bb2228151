"""
Taxonomy context state container.

The store holds a single frozen `TaxonomyState` snapshot. Every mutator builds a
complete next snapshot and swaps it in with one assignment, so readers never
observe a half-applied update (e.g. organization set but location not yet).
Subscribers are called with `(new_state, old_state)` after each swap.

Instances are constructed explicitly and passed to whoever needs them; there is
no module-level store.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain.context.validation import INVALID_LOCATION, INVALID_ORGANIZATION, validate_selection
from domain.errors import InvalidSelection
from domain.schemas import (
    EnhancedLocation,
    EnhancedOrganization,
    TaxonomyContext,
    TaxonomyPermissions,
    TaxonomySelection,
    TaxonomyValidation,
)

logger = logging.getLogger(__name__)


class TaxonomyState(BaseModel):
    """Everything the store tracks, as one immutable snapshot."""

    model_config = ConfigDict(frozen=True)

    context: TaxonomyContext = Field(default_factory=TaxonomyContext)
    permissions: TaxonomyPermissions = Field(default_factory=TaxonomyPermissions)
    is_loading: bool = False
    error: str | None = None
    pending_selection: TaxonomySelection | None = None
    is_initialized: bool = False


Listener = Callable[[TaxonomyState, TaxonomyState], None]


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class TaxonomyStore:
    """Current organization/location selection, the sets it must belong to, and user capabilities."""

    def __init__(self, initial: TaxonomyState | None = None) -> None:
        self._state = initial or TaxonomyState()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------ #
    # Snapshots / subscriptions
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> TaxonomyState:
        return self._state

    @property
    def context(self) -> TaxonomyContext:
        return self._state.context

    @property
    def permissions(self) -> TaxonomyPermissions:
        return self._state.permissions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, **updates: Any) -> None:
        previous = self._state
        self._state = previous.model_copy(update=updates)
        if self._state == previous:
            return
        for listener in list(self._listeners):
            try:
                listener(self._state, previous)
            except Exception:
                logger.exception("Taxonomy store listener %r failed", listener)

    def _next_context(self, **updates: Any) -> TaxonomyContext:
        return self._state.context.model_copy(update=updates)

    # ------------------------------------------------------------------ #
    # Available entities
    # ------------------------------------------------------------------ #

    def set_available_organizations(self, organizations: Iterable[EnhancedOrganization | Mapping]) -> None:
        orgs = tuple(EnhancedOrganization.model_validate(o) for o in organizations)
        self._commit(context=self._next_context(available_organizations=orgs))

    def set_available_locations(self, locations: Iterable[EnhancedLocation | Mapping]) -> None:
        locs = tuple(EnhancedLocation.model_validate(loc) for loc in locations)
        self._commit(context=self._next_context(available_locations=locs))

    def update_organization(self, organization: EnhancedOrganization) -> None:
        """Replace one available organization by id (and the current one, if it is the same entity)."""
        ctx = self._state.context
        orgs = tuple(organization if o.id == organization.id else o for o in ctx.available_organizations)
        current = organization if ctx.organization and ctx.organization.id == organization.id else ctx.organization
        self._commit(context=self._next_context(available_organizations=orgs, organization=current))

    def update_location(self, location: EnhancedLocation) -> None:
        ctx = self._state.context
        locs = tuple(location if loc.id == location.id else loc for loc in ctx.available_locations)
        current = location if ctx.location and ctx.location.id == location.id else ctx.location
        self._commit(context=self._next_context(available_locations=locs, location=current))

    # ------------------------------------------------------------------ #
    # Current selection
    # ------------------------------------------------------------------ #

    def set_current_organization(self, organization: EnhancedOrganization | None) -> None:
        """Assign without a membership check (callers guarantee membership, e.g. right after a fetch)."""
        self._commit(context=self._next_context(organization=organization, error=None), error=None)

    def set_current_location(self, location: EnhancedLocation | None) -> None:
        self._commit(context=self._next_context(location=location, error=None), error=None)

    def set_context(
        self,
        *,
        organization: EnhancedOrganization | None = UNSET,
        location: EnhancedLocation | None = UNSET,
        available_organizations: Iterable[EnhancedOrganization] = UNSET,
        available_locations: Iterable[EnhancedLocation] = UNSET,
        strict: bool = False,
    ) -> bool:
        """
        Validated partial update of the context.

        A supplied organization/location must be a member (by id) of the
        supplied list, or of the current list when none is supplied. On failure
        the whole update is rejected, prior state is kept and a single warning
        names the invalid field(s).

        Args:
            strict: raise InvalidSelection instead of warning

        Returns:
            True if the update was applied
        """
        ctx = self._state.context
        updates: dict[str, Any] = {}

        orgs = ctx.available_organizations
        if available_organizations is not UNSET:
            orgs = tuple(EnhancedOrganization.model_validate(o) for o in available_organizations)
            updates["available_organizations"] = orgs
        locs = ctx.available_locations
        if available_locations is not UNSET:
            locs = tuple(EnhancedLocation.model_validate(loc) for loc in available_locations)
            updates["available_locations"] = locs

        invalid: list[tuple[str, int, str]] = []
        if organization is not UNSET:
            if organization is not None and organization.id not in {o.id for o in orgs}:
                invalid.append(("organization", organization.id, INVALID_ORGANIZATION))
            updates["organization"] = organization
        if location is not UNSET:
            if location is not None and location.id not in {loc.id for loc in locs}:
                invalid.append(("location", location.id, INVALID_LOCATION))
            updates["location"] = location

        if invalid:
            fields = ", ".join(f"{name}={entity_id}" for name, entity_id, _ in invalid)
            message = f"{invalid[0][2]} (rejected update: {fields})"
            if strict:
                raise InvalidSelection(message, field=invalid[0][0], entity_id=invalid[0][1])
            logger.warning(message)
            return False

        self._commit(context=self._next_context(**updates), error=None)
        return True

    def _resolve(self, selection: TaxonomySelection) -> tuple[EnhancedOrganization | None, EnhancedLocation | None]:
        ctx = self._state.context
        org_map = {o.id: o for o in ctx.available_organizations}
        loc_map = {loc.id: loc for loc in ctx.available_locations}
        organization = org_map.get(selection.organization_id) if selection.organization_id is not None else None
        location = loc_map.get(selection.location_id) if selection.location_id is not None else None
        return organization, location

    def set_selection(self, selection: TaxonomySelection) -> None:
        """
        Apply organization and location ids in one transition.

        Ids that do not resolve against the available lists leave their slot
        empty; check `has_valid_selection()` afterwards when strictness matters.
        """
        organization, location = self._resolve(selection)
        self._commit(
            context=self._next_context(organization=organization, location=location, error=None),
            pending_selection=None,
            error=None,
        )

    def set_pending_selection(self, selection: TaxonomySelection | None) -> None:
        self._commit(pending_selection=selection)

    def commit_pending_selection(self) -> None:
        pending = self._state.pending_selection
        if pending is None:
            return
        self.set_selection(pending)

    def reset_selection(self) -> None:
        self._commit(
            context=self._next_context(organization=None, location=None),
            pending_selection=None,
        )

    # ------------------------------------------------------------------ #
    # Permissions / flags
    # ------------------------------------------------------------------ #

    def set_permissions(self, permissions: TaxonomyPermissions | Mapping[str, bool]) -> None:
        self._commit(permissions=TaxonomyPermissions.model_validate(permissions))

    def set_loading(self, loading: bool) -> None:
        self._commit(is_loading=loading, context=self._next_context(is_loading=loading))

    def set_error(self, error: str | None) -> None:
        self._commit(
            error=error,
            is_loading=False,
            context=self._next_context(error=error, is_loading=False),
        )

    def set_initialized(self, initialized: bool) -> None:
        self._commit(is_initialized=initialized)

    # ------------------------------------------------------------------ #
    # Read-only queries
    # ------------------------------------------------------------------ #

    def get_current_selection(self) -> TaxonomySelection:
        return self._state.context.selection

    def validate_current_selection(self) -> TaxonomyValidation:
        ctx = self._state.context
        return validate_selection(ctx.selection, ctx.available_organizations, ctx.available_locations)

    def has_valid_selection(self) -> bool:
        return self.validate_current_selection().is_valid

    def can_switch_to_organization(self, organization_id: int) -> bool:
        if not self._state.permissions.can_switch_context:
            return False
        return organization_id in {o.id for o in self._state.context.available_organizations}

    def can_switch_to_location(self, location_id: int) -> bool:
        if not self._state.permissions.can_switch_context:
            return False
        return location_id in {loc.id for loc in self._state.context.available_locations}

    @property
    def selected_organization_name(self) -> str:
        org = self._state.context.organization
        return org.display_name if org else ""

    @property
    def selected_location_name(self) -> str:
        loc = self._state.context.location
        return loc.display_name if loc else ""

    def reset(self) -> None:
        """Return context, permissions, flags and pending selection to initial defaults."""
        self._commit(**dict(TaxonomyState()))
