"""Building metadata resolution (core domain)."""

from __future__ import annotations

import logging
from typing import Union

from core.address_parser import AddressParseError, parse_address
from core.models import BuildingInfo, LookupOutcome
from core.ports import BuildingStorePort, LookupLogPort

LOGGER = logging.getLogger(__name__)


class BuildingResolver:
    """Map raw listing addresses to known construction metadata."""

    def __init__(self, buildings: BuildingStorePort, lookup_log: LookupLogPort) -> None:
        self._buildings = buildings
        self._lookup_log = lookup_log

    def resolve(self, address: str) -> Union[BuildingInfo, LookupOutcome]:
        """Return BuildingInfo, or the LookupOutcome explaining the miss.

        Misses are written to the lookup log, which keeps a single entry per
        (address, reason) pair.
        """

        try:
            parsed = parse_address(address)
        except AddressParseError:
            outcome = LookupOutcome.PARSING_FAILED
        else:
            record = self._buildings.find_building(parsed)
            if record is not None:
                return record.info
            outcome = LookupOutcome.ADDRESS_NOT_FOUND

        LOGGER.debug("Building lookup miss for %r: %s", address, outcome.value)
        self._lookup_log.record_lookup_failure(address, outcome)
        return outcome
