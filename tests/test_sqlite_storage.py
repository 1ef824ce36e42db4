from __future__ import annotations

import json

from adapters.building_seed import build_records, load_building_dataset, seed_buildings
from adapters.sqlite_storage import SQLiteStorage
from core.address_parser import parse_address
from core.models import BuildingInfo, LookupOutcome

from fakes import make_listing

ENTRIES = [
    {"address": "проспект Независимости, 10", "year": 1975, "floors": 9, "types": ["panel"]},
    {"address": "Логойский тракт, 22", "year": 1981, "floors": 9},
    {"address": "Логойский тракт, 22", "year": 1981, "floors": 9},
    {"address": "без номера", "year": 1900, "floors": 1},
]


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "flatwatch.db"))
    storage.init_db()
    return storage


def test_seeding_twice_does_not_duplicate(tmp_path) -> None:
    storage = _storage(tmp_path)

    first = seed_buildings(storage, ENTRIES)
    second = seed_buildings(storage, ENTRIES)

    assert first == 2
    assert second == 0
    assert storage.count_buildings() == 2


def test_insert_ignores_existing_addresses(tmp_path) -> None:
    storage = _storage(tmp_path)
    records = build_records(ENTRIES)

    storage.insert_buildings(records)
    storage.insert_buildings(records)

    assert storage.count_buildings() == 2


def test_find_building_by_structured_address(tmp_path) -> None:
    storage = _storage(tmp_path)
    seed_buildings(storage, ENTRIES)

    record = storage.find_building(parse_address("Минск, проспект Независимости, 10"))

    assert record is not None
    assert record.info == BuildingInfo(year=1975, floors=9)
    assert record.types == frozenset({"panel"})
    assert storage.find_building(parse_address("проспект Независимости, 11")) is None


def test_load_building_dataset(tmp_path) -> None:
    path = tmp_path / "buildings.json"
    path.write_text(json.dumps(ENTRIES, ensure_ascii=False), encoding="utf-8")

    assert load_building_dataset(str(path)) == ENTRIES


def test_listing_upsert_merges_documents(tmp_path) -> None:
    storage = _storage(tmp_path)
    listing = make_listing()
    listing.raw["seller"] = {"type": "owner"}
    listing.delivered_to = {1: True}
    storage.upsert_listing(listing)

    updated = make_listing(price="400")
    updated.building_info = BuildingInfo(year=1975, floors=9)
    updated.delivered_to = {1: True, 2: True}
    storage.upsert_listing(updated)

    stored = storage.find_listing("X")
    assert stored is not None
    assert str(stored.price_usd) == "400"
    assert stored.building_info == BuildingInfo(year=1975, floors=9)
    assert stored.delivered_to == {1: True, 2: True}
    assert stored.raw["seller"] == {"type": "owner"}


def test_sessions_lifecycle(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_url(1, "https://r.onliner.by/ak/?rooms=1")
    storage.set_url(2, None)

    assert [subscriber.chat_id for subscriber in storage.list_active_subscribers()] == [1]

    storage.clear_url(1)

    assert storage.get_subscriber(1).url is None
    assert storage.list_active_subscribers() == []
    assert storage.get_subscriber(3) is None


def test_lookup_failures_are_distinct_per_reason(tmp_path) -> None:
    storage = _storage(tmp_path)

    storage.record_lookup_failure("где-то", LookupOutcome.PARSING_FAILED)
    storage.record_lookup_failure("где-то", LookupOutcome.PARSING_FAILED)
    storage.record_lookup_failure("где-то", LookupOutcome.ADDRESS_NOT_FOUND)

    assert storage.count_lookup_failures("где-то") == 2


def test_ensure_session_keeps_existing_url(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.ensure_session(5)
    storage.set_url(6, "https://r.onliner.by/ak/?rooms=2")
    storage.ensure_session(6)

    assert storage.get_subscriber(5).url is None
    assert storage.get_subscriber(6).url == "https://r.onliner.by/ak/?rooms=2"
