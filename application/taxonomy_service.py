"""Taxonomy context workflow: fetch, rehydrate, select, switch, persist."""

import logging

from domain.context.persistence import rehydrate_selection, serialize_selection
from domain.context.store import TaxonomyState, TaxonomyStore
from domain.errors import InvalidSelection
from domain.identifiers import resolve_identifier
from domain.schemas import EnhancedLocation, EnhancedOrganization, TaxonomySelection
from infrastructure.api.taxonomy import TaxonomyAPI
from infrastructure.io.fs import SelectionStorage
from infrastructure.observability.logging import clear_taxonomy_context, set_log_context

logger = logging.getLogger(__name__)

EntityId = int | str


def _entity_id(value: EntityId) -> int:
    """Accept plain ints as-is; strings go through the GraphQL identifier resolver."""
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return resolve_identifier(str(value))


class TaxonomyService:
    """
    Drives a TaxonomyStore from the taxonomy API and keeps the persisted
    selection in sync.

    The selection is written to `storage` whenever it changes (store
    subscription) and rehydrated against freshly fetched lists on
    `initialize()`.
    """

    def __init__(
        self,
        api: TaxonomyAPI,
        store: TaxonomyStore,
        storage: SelectionStorage | None = None,
        *,
        current_user_only: bool = False,
    ) -> None:
        self.api = api
        self.store = store
        self.storage = storage
        self.current_user_only = current_user_only
        self._unsubscribe = store.subscribe(self._on_state_change)

    def close(self) -> None:
        self._unsubscribe()

    def _on_state_change(self, new: TaxonomyState, old: TaxonomyState) -> None:
        selection = new.context.selection
        if selection == old.context.selection:
            return

        clear_taxonomy_context()
        set_log_context(organization_id=selection.organization_id, location_id=selection.location_id)

        if self.storage is not None:
            self.storage.save(serialize_selection(new.context))
        logger.info(
            "Taxonomy selection changed: organization=%s location=%s",
            selection.organization_id,
            selection.location_id,
        )

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    async def _fetch(self) -> tuple[list[EnhancedOrganization], list[EnhancedLocation]]:
        if self.current_user_only:
            return await self.api.get_all_for_current_user()
        organizations, locations = await self.api.get_all()
        return organizations.results, locations.results

    async def _load_lists(self) -> tuple[list[EnhancedOrganization], list[EnhancedLocation]]:
        self.store.set_loading(True)
        try:
            organizations, locations = await self._fetch()
        except Exception as e:
            self.store.set_error(str(e))
            raise

        logger.info("Loaded %d organization(s), %d location(s)", len(organizations), len(locations))
        return organizations, locations

    def _apply(
        self,
        organizations: list[EnhancedOrganization],
        locations: list[EnhancedLocation],
        selection: TaxonomySelection,
    ) -> None:
        """Swap in the new lists and the selection resolved against them as one transition."""
        org_map = {o.id: o for o in organizations}
        loc_map = {loc.id: loc for loc in locations}
        self.store.set_context(
            organization=org_map.get(selection.organization_id),
            location=loc_map.get(selection.location_id),
            available_organizations=organizations,
            available_locations=locations,
        )
        self.store.set_loading(False)

    async def initialize(self) -> TaxonomySelection:
        """Fetch both lists, restore the persisted selection, mark the store initialized."""
        persisted = self.storage.load() if self.storage is not None else None
        organizations, locations = await self._load_lists()

        self._apply(organizations, locations, rehydrate_selection(persisted, organizations, locations))
        self.store.set_initialized(True)
        return self.store.get_current_selection()

    async def refresh(self) -> TaxonomySelection:
        """Refetch both lists, keeping whatever part of the current selection still exists."""
        organizations, locations = await self._load_lists()
        self._apply(organizations, locations, self.store.get_current_selection())
        return self.store.get_current_selection()

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #

    def select(
        self,
        organization_id: EntityId | None = None,
        location_id: EntityId | None = None,
    ) -> TaxonomySelection:
        """
        Select organization and location together (either may be None to clear it).

        Ids may be numeric or GraphQL global ids.

        Raises:
            InvalidIdentifier: if an id cannot be resolved
            InvalidSelection: if an id is not in the available lists
        """
        selection = TaxonomySelection(
            organization_id=_entity_id(organization_id) if organization_id is not None else None,
            location_id=_entity_id(location_id) if location_id is not None else None,
        )
        ctx = self.store.context
        if selection.organization_id is not None and selection.organization_id not in {
            o.id for o in ctx.available_organizations
        }:
            raise InvalidSelection(
                f"Organization {selection.organization_id} is not available",
                field="organization",
                entity_id=selection.organization_id,
            )
        if selection.location_id is not None and selection.location_id not in {
            loc.id for loc in ctx.available_locations
        }:
            raise InvalidSelection(
                f"Location {selection.location_id} is not available",
                field="location",
                entity_id=selection.location_id,
            )

        self.store.set_selection(selection)
        validation = self.store.validate_current_selection()
        for warning in validation.warnings:
            logger.warning(warning)
        return self.store.get_current_selection()

    def switch_organization(self, organization_id: EntityId) -> TaxonomySelection:
        """Change the organization, keeping the current location (requires can_switch_context)."""
        entity_id = _entity_id(organization_id)
        if not self.store.can_switch_to_organization(entity_id):
            raise InvalidSelection(
                f"Cannot switch to organization {entity_id}",
                field="organization",
                entity_id=entity_id,
            )
        current = self.store.get_current_selection()
        self.store.set_selection(current.model_copy(update={"organization_id": entity_id}))
        return self.store.get_current_selection()

    def switch_location(self, location_id: EntityId) -> TaxonomySelection:
        entity_id = _entity_id(location_id)
        if not self.store.can_switch_to_location(entity_id):
            raise InvalidSelection(
                f"Cannot switch to location {entity_id}",
                field="location",
                entity_id=entity_id,
            )
        current = self.store.get_current_selection()
        self.store.set_selection(current.model_copy(update={"location_id": entity_id}))
        return self.store.get_current_selection()

    def logout(self) -> None:
        """Forget everything: store back to defaults, persisted selection removed."""
        self.store.reset()
        if self.storage is not None:
            self.storage.clear()
        clear_taxonomy_context()
        logger.info("Taxonomy context cleared")
