"""Building reference dataset loader.

The dataset is a JSON list of ``{"address", "year", "floors", "types"}``
entries. Seeding is skipped entirely when the store already holds buildings.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, List

from core.address_parser import AddressParseError, parse_address
from core.models import BuildingRecord
from core.ports import BuildingStorePort

LOGGER = logging.getLogger(__name__)


def load_building_dataset(path: str) -> List[dict]:
    with open(path, "r", encoding="utf-8") as handle:
        entries = json.load(handle)
    if not isinstance(entries, list):
        raise ValueError(f"Building dataset must be a JSON list: {path}")
    return entries


def build_records(entries: Iterable[dict]) -> List[BuildingRecord]:
    """Parse dataset entries into BuildingRecord values, skipping bad addresses."""

    records: List[BuildingRecord] = []
    for entry in entries:
        raw_address = entry.get("address", "")
        try:
            address = parse_address(raw_address)
        except AddressParseError:
            LOGGER.warning("Skipping building with unparseable address: %r", raw_address)
            continue
        records.append(
            BuildingRecord(
                address=address,
                year=int(entry["year"]),
                floors=int(entry["floors"]),
                types=frozenset(entry.get("types") or []),
            )
        )
    return records


def seed_buildings(store: BuildingStorePort, entries: Iterable[dict]) -> int:
    """Seed the building store once and return the number of inserted records."""

    if store.has_buildings():
        LOGGER.info("Buildings already seeded, skipping")
        return 0

    inserted = store.insert_buildings(build_records(entries))
    LOGGER.info("Seeded %s buildings", inserted)
    return inserted
