import pytest

from application import TaxonomyService
from domain.context import TaxonomyStore
from domain.errors import InvalidIdentifier, InvalidSelection, TransportExhausted
from domain.identifiers import to_global_id
from domain.schemas import EnhancedLocation, EnhancedOrganization, PaginatedResponse, TaxonomySelection
from infrastructure.io import SelectionStorage

ORGS = [EnhancedOrganization(id=1, name="Root"), EnhancedOrganization(id=2, name="Child", parent_id=1)]
LOCS = [EnhancedLocation(id=3, name="Berlin"), EnhancedLocation(id=4, name="Paris")]


class FakeTaxonomyAPI:
    def __init__(self, organizations=ORGS, locations=LOCS, error: Exception | None = None) -> None:
        self.organizations = list(organizations)
        self.locations = list(locations)
        self.error = error
        self.calls = 0

    async def get_all(self, params=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return (
            PaginatedResponse[EnhancedOrganization](results=self.organizations, total=len(self.organizations)),
            PaginatedResponse[EnhancedLocation](results=self.locations, total=len(self.locations)),
        )

    async def get_all_for_current_user(self):
        return self.organizations[:1], self.locations[:1]


@pytest.fixture
def storage(tmp_path) -> SelectionStorage:
    return SelectionStorage(tmp_path / "prefs.json")


@pytest.mark.asyncio
async def test_initialize_rehydrates_persisted_selection(storage: SelectionStorage) -> None:
    storage.save({"context": {"organization": {"id": 2, "name": "Child"}, "location": {"id": 99, "name": "Gone"}}})
    store = TaxonomyStore()

    selection = await TaxonomyService(FakeTaxonomyAPI(), store, storage).initialize()

    assert selection == TaxonomySelection(organization_id=2, location_id=None)
    assert store.state.is_initialized is True
    assert store.state.is_loading is False
    assert [o.id for o in store.context.available_organizations] == [1, 2]


@pytest.mark.asyncio
async def test_select_persists_and_accepts_global_ids(storage: SelectionStorage) -> None:
    store = TaxonomyStore()
    service = TaxonomyService(FakeTaxonomyAPI(), store, storage)
    await service.initialize()

    service.select(organization_id=to_global_id("Organization", 1), location_id="4")

    assert store.get_current_selection() == TaxonomySelection(organization_id=1, location_id=4)
    assert storage.load() == {
        "context": {
            "organization": {"id": 1, "name": "Root"},
            "location": {"id": 4, "name": "Paris"},
        }
    }


@pytest.mark.asyncio
async def test_select_rejects_unknown_or_malformed_ids() -> None:
    store = TaxonomyStore()
    service = TaxonomyService(FakeTaxonomyAPI(), store)
    await service.initialize()

    with pytest.raises(InvalidSelection):
        service.select(organization_id=7)
    with pytest.raises(InvalidIdentifier):
        service.select(location_id="not-an-id")
    assert store.get_current_selection() == TaxonomySelection()


@pytest.mark.asyncio
async def test_switch_requires_permission() -> None:
    store = TaxonomyStore()
    service = TaxonomyService(FakeTaxonomyAPI(), store)
    await service.initialize()
    service.select(organization_id=1, location_id=3)

    with pytest.raises(InvalidSelection):
        service.switch_organization(2)

    store.set_permissions({"can_switch_context": True})
    assert service.switch_organization(2) == TaxonomySelection(organization_id=2, location_id=3)
    assert service.switch_location(4) == TaxonomySelection(organization_id=2, location_id=4)


@pytest.mark.asyncio
async def test_refresh_drops_entities_that_disappeared() -> None:
    api = FakeTaxonomyAPI()
    store = TaxonomyStore()
    service = TaxonomyService(api, store)
    await service.initialize()
    service.select(organization_id=2, location_id=3)

    api.organizations = ORGS[:1]
    selection = await service.refresh()

    assert selection == TaxonomySelection(organization_id=None, location_id=3)
    assert api.calls == 2


@pytest.mark.asyncio
async def test_fetch_failure_is_recorded_and_reraised() -> None:
    error = TransportExhausted("organizations.list", graphql_error="boom", rest_error=RuntimeError("down"))
    store = TaxonomyStore()

    with pytest.raises(TransportExhausted):
        await TaxonomyService(FakeTaxonomyAPI(error=error), store).initialize()

    assert store.state.error == str(error)
    assert store.state.is_loading is False
    assert store.state.is_initialized is False


@pytest.mark.asyncio
async def test_current_user_only_and_logout(storage: SelectionStorage) -> None:
    store = TaxonomyStore()
    service = TaxonomyService(FakeTaxonomyAPI(), store, storage, current_user_only=True)
    await service.initialize()
    assert [o.id for o in store.context.available_organizations] == [1]

    service.select(organization_id=1)
    assert storage.load() is not None

    service.logout()

    assert store.state.is_initialized is False
    assert store.get_current_selection() == TaxonomySelection()
    assert storage.load() is None


@pytest.mark.asyncio
async def test_refresh_swaps_lists_and_selection_in_one_transition() -> None:
    api = FakeTaxonomyAPI()
    store = TaxonomyStore()
    service = TaxonomyService(api, store)
    await service.initialize()
    service.select(organization_id=2, location_id=3)

    snapshots = []
    store.subscribe(lambda new, old: snapshots.append(new.context))
    api.organizations = ORGS[:1]
    await service.refresh()

    assert snapshots
    for ctx in snapshots:
        if ctx.organization is not None:
            assert ctx.organization.id in {o.id for o in ctx.available_organizations}
        if ctx.location is not None:
            assert ctx.location.id in {loc.id for loc in ctx.available_locations}
    assert store.get_current_selection() == TaxonomySelection(organization_id=None, location_id=3)


@pytest.mark.asyncio
async def test_initialize_restores_selection_with_the_lists(storage: SelectionStorage) -> None:
    storage.save({"context": {"organization": {"id": 1, "name": "Root"}, "location": {"id": 4, "name": "Paris"}}})
    store = TaxonomyStore()
    snapshots = []
    store.subscribe(lambda new, old: snapshots.append(new.context))

    await TaxonomyService(FakeTaxonomyAPI(), store, storage).initialize()

    # once the lists are published the persisted selection is already in place
    loaded = [ctx for ctx in snapshots if ctx.available_organizations]
    assert loaded
    assert all(ctx.selection == TaxonomySelection(organization_id=1, location_id=4) for ctx in loaded)
