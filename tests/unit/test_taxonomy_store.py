import logging

import pytest

from domain.context import TaxonomyState, TaxonomyStore
from domain.errors import InvalidSelection
from domain.schemas import EnhancedLocation, EnhancedOrganization, TaxonomyEntity, TaxonomySelection

ORGS = [EnhancedOrganization(id=1, name="Root"), EnhancedOrganization(id=2, name="Child", parent_id=1)]
LOCS = [EnhancedLocation(id=1, name="Berlin"), EnhancedLocation(id=2, name="Paris")]


@pytest.fixture
def store() -> TaxonomyStore:
    s = TaxonomyStore()
    s.set_available_organizations(ORGS)
    s.set_available_locations(LOCS)
    return s


def test_set_context_accepts_members_of_supplied_list() -> None:
    store = TaxonomyStore()

    assert store.set_context(organization=ORGS[0], available_organizations=ORGS) is True
    assert store.context.organization.id == 1
    assert [o.id for o in store.context.available_organizations] == [1, 2]


def test_set_context_rejects_unknown_entity_and_keeps_state(store: TaxonomyStore, caplog) -> None:
    store.set_context(organization=ORGS[0])
    before = store.state

    with caplog.at_level(logging.WARNING, logger="domain.context.store"):
        applied = store.set_context(
            organization=EnhancedOrganization(id=99, name="Ghost"),
            available_organizations=ORGS,
            location=LOCS[1],
        )

    assert applied is False
    assert store.state is before
    assert store.context.organization.id == 1
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "organization=99" in warnings[0].getMessage()


def test_set_context_strict_raises(store: TaxonomyStore) -> None:
    with pytest.raises(InvalidSelection) as excinfo:
        store.set_context(location=EnhancedLocation(id=42, name="Nowhere"), strict=True)

    assert excinfo.value.field == "location"
    assert excinfo.value.entity_id == 42


def test_set_selection_applies_both_ids_in_one_transition(store: TaxonomyStore) -> None:
    seen: list[TaxonomySelection] = []
    store.subscribe(lambda new, old: seen.append(new.context.selection))

    store.set_selection(TaxonomySelection(organization_id=1, location_id=2))

    assert seen == [TaxonomySelection(organization_id=1, location_id=2)]
    assert store.context.organization.id == 1
    assert store.context.location.id == 2


def test_set_selection_unknown_id_leaves_slot_empty(store: TaxonomyStore) -> None:
    store.set_selection(TaxonomySelection(organization_id=77, location_id=1))

    assert store.context.organization is None
    assert store.context.location.id == 1
    assert store.has_valid_selection() is True


def test_pending_selection_is_staged_then_committed(store: TaxonomyStore) -> None:
    store.set_pending_selection(TaxonomySelection(organization_id=2, location_id=1))
    assert store.context.organization is None

    store.commit_pending_selection()

    assert store.get_current_selection() == TaxonomySelection(organization_id=2, location_id=1)
    assert store.state.pending_selection is None


def test_reset_selection_clears_current_and_pending(store: TaxonomyStore) -> None:
    store.set_selection(TaxonomySelection(organization_id=1, location_id=1))
    store.set_pending_selection(TaxonomySelection(organization_id=2))

    store.reset_selection()

    assert store.get_current_selection() == TaxonomySelection()
    assert store.state.pending_selection is None


def test_can_switch_requires_permission_and_membership(store: TaxonomyStore) -> None:
    assert store.can_switch_to_organization(1) is False

    store.set_permissions({"can_switch_context": True})

    assert store.can_switch_to_organization(1) is True
    assert store.can_switch_to_organization(99) is False
    assert store.can_switch_to_location(2) is True


def test_validate_current_selection_does_not_mutate(store: TaxonomyStore) -> None:
    store.set_current_organization(EnhancedOrganization(id=50, name="Stale"))
    before = store.state

    validation = store.validate_current_selection()

    assert validation.is_valid is False
    assert validation.errors == ["Selected organization is not available or does not exist"]
    assert store.state is before


def test_location_outside_selected_organization_only_warns() -> None:
    store = TaxonomyStore()
    store.set_available_organizations(ORGS)
    store.set_available_locations([EnhancedLocation(id=5, name="Lab", organizations=(TaxonomyEntity(id=2, name="Child"),))])

    store.set_selection(TaxonomySelection(organization_id=1, location_id=5))
    validation = store.validate_current_selection()

    assert validation.is_valid is True
    assert validation.warnings == ["Selected location may not be available in the selected organization"]


def test_set_error_clears_loading(store: TaxonomyStore) -> None:
    store.set_loading(True)
    assert store.context.is_loading is True

    store.set_error("boom")

    assert store.state.is_loading is False
    assert store.context.is_loading is False
    assert store.context.error == "boom"


def test_update_organization_replaces_current_too(store: TaxonomyStore) -> None:
    store.set_selection(TaxonomySelection(organization_id=1))

    store.update_organization(EnhancedOrganization(id=1, name="Renamed"))

    assert store.selected_organization_name == "Renamed"
    assert store.context.available_organizations[0].name == "Renamed"


def test_reset_returns_everything_to_defaults(store: TaxonomyStore) -> None:
    store.set_permissions({"can_switch_context": True})
    store.set_selection(TaxonomySelection(organization_id=1, location_id=1))
    store.set_initialized(True)

    store.reset()

    assert store.state == TaxonomyState()


def test_listener_failure_does_not_block_other_listeners(store: TaxonomyStore) -> None:
    calls: list[str] = []

    def broken(new, old):
        raise RuntimeError("listener bug")

    store.subscribe(broken)
    store.subscribe(lambda new, old: calls.append("ok"))

    store.set_loading(True)

    assert calls == ["ok"]


def test_unsubscribe_and_independent_instances() -> None:
    a, b = TaxonomyStore(), TaxonomyStore()
    calls: list[int] = []
    unsubscribe = a.subscribe(lambda new, old: calls.append(1))

    b.set_loading(True)
    a.set_loading(True)
    unsubscribe()
    a.set_loading(False)

    assert calls == [1]
    assert b.state.is_loading is True
