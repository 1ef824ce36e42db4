"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, feed and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from core.models import (
    BuildingRecord,
    DeliveryOutcome,
    Listing,
    LookupOutcome,
    StructuredAddress,
    Subscriber,
)


class SessionStorePort(Protocol):
    """Subscriber sessions shared by the dispatch loop and the bot front-end."""

    def get_subscriber(self, chat_id: int) -> Optional[Subscriber]:
        ...

    def ensure_session(self, chat_id: int) -> None:
        ...

    def set_url(self, chat_id: int, url: Optional[str]) -> None:
        ...

    def clear_url(self, chat_id: int) -> None:
        ...

    def list_active_subscribers(self) -> List[Subscriber]:
        ...


class ListingStorePort(Protocol):
    def find_listing(self, external_id: str) -> Optional[Listing]:
        ...

    def upsert_listing(self, listing: Listing) -> None:
        ...


class BuildingStorePort(Protocol):
    def find_building(self, address: StructuredAddress) -> Optional[BuildingRecord]:
        ...

    def has_buildings(self) -> bool:
        ...

    def insert_buildings(self, records: Iterable[BuildingRecord]) -> int:
        ...


class LookupLogPort(Protocol):
    def record_lookup_failure(self, address: str, reason: LookupOutcome) -> None:
        ...


class ListingFetcherPort(Protocol):
    async def fetch(self, search_url: str) -> List[Listing]:
        ...


class NotifierPort(Protocol):
    """Delivery channel; never raises, failures come back as outcomes."""

    async def notify(self, recipient_id: int, listing: Listing) -> DeliveryOutcome:
        ...
