"""Per-subscriber listing deduplication (core domain)."""

from __future__ import annotations

import logging

from core.building_resolver import BuildingResolver
from core.models import AdmitDecision, BuildingInfo, Listing
from core.ports import ListingStorePort

LOGGER = logging.getLogger(__name__)


class AdmitGate:
    """Decide whether a listing is new for a recipient and persist the result.

    The read-modify-write on ``delivered_to`` is not atomic, so callers must
    serialize admits for the same listing (the dispatch loop does).
    """

    def __init__(self, listings: ListingStorePort, resolver: BuildingResolver) -> None:
        self._listings = listings
        self._resolver = resolver

    def admit(self, listing: Listing, recipient_id: int) -> AdmitDecision:
        info = self._resolver.resolve(listing.address)
        listing.building_info = info if isinstance(info, BuildingInfo) else None

        existing = self._listings.find_listing(listing.external_id)
        listing.delivered_to = dict(existing.delivered_to) if existing else {}

        if listing.was_delivered_to(recipient_id):
            return AdmitDecision(should_notify=False, listing=listing)

        listing.delivered_to[recipient_id] = True
        # Persisted before delivery so the mark survives a failed send.
        self._listings.upsert_listing(listing)
        LOGGER.debug("Listing %s admitted for %s", listing.external_id, recipient_id)
        return AdmitDecision(should_notify=True, listing=listing)
