import json
import logging

from domain.context import rehydrate_selection, serialize_selection
from domain.schemas import EnhancedLocation, EnhancedOrganization, TaxonomyContext, TaxonomySelection
from infrastructure.io import SelectionStorage

ORGS = [EnhancedOrganization(id=1, name="Root", title="Root", hosts_count=4)]
LOCS = [EnhancedLocation(id=3, name="Berlin")]


def test_serialize_keeps_only_identifying_fields() -> None:
    ctx = TaxonomyContext(
        organization=ORGS[0],
        available_organizations=tuple(ORGS),
        available_locations=tuple(LOCS),
        is_loading=True,
    )

    assert serialize_selection(ctx) == {
        "context": {
            "organization": {"id": 1, "name": "Root", "title": "Root"},
            "location": None,
        }
    }


def test_rehydrate_resolves_against_fresh_lists(caplog) -> None:
    persisted = {"context": {"organization": {"id": 1, "name": "Root"}, "location": {"id": 8, "name": "Gone"}}}

    with caplog.at_level(logging.INFO, logger="domain.context.persistence"):
        selection = rehydrate_selection(persisted, ORGS, LOCS)

    assert selection == TaxonomySelection(organization_id=1, location_id=None)
    assert any("location 8" in r.getMessage() for r in caplog.records)


def test_rehydrate_tolerates_malformed_input() -> None:
    assert rehydrate_selection(None, ORGS, LOCS) == TaxonomySelection()
    assert rehydrate_selection({"context": "nope"}, ORGS, LOCS) == TaxonomySelection()
    assert rehydrate_selection({"context": {"organization": {"id": True}}}, ORGS, LOCS) == TaxonomySelection()
    assert rehydrate_selection({"context": {"organization": {"id": "1"}}}, ORGS, LOCS) == TaxonomySelection()


def test_storage_save_load_clear(tmp_path) -> None:
    storage = SelectionStorage(tmp_path / "state" / "prefs.json")
    document = {"context": {"organization": {"id": 1, "name": "Root"}, "location": None}}

    assert storage.load() is None
    storage.save(document)
    assert storage.load() == document
    assert [p.name for p in (tmp_path / "state").iterdir()] == ["prefs.json"]

    storage.clear()
    assert storage.load() is None
    storage.clear()


def test_storage_ignores_corrupt_file(tmp_path, caplog) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="infrastructure.io.fs"):
        assert SelectionStorage(path).load() is None

    assert len(caplog.records) == 1

    path.write_text(json.dumps([1, 2]), encoding="utf-8")
    assert SelectionStorage(path).load() is None
