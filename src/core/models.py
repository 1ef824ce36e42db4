"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the feed payload, the database schema or Telegram types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class StreetType(str, Enum):
    """Street type keywords recognized in upstream addresses."""

    STREET = "улица"
    LANE = "переулок"
    AVENUE = "проспект"
    TRACT = "тракт"


@dataclass(frozen=True)
class StructuredAddress:
    street_type: Optional[StreetType]
    street: str
    building_number: str


@dataclass(frozen=True)
class BuildingInfo:
    """Construction metadata attached to a listing."""

    year: int
    floors: int


@dataclass(frozen=True)
class BuildingRecord:
    address: StructuredAddress
    year: int
    floors: int
    types: frozenset[str] = frozenset()

    @property
    def info(self) -> BuildingInfo:
        return BuildingInfo(year=self.year, floors=self.floors)


class LookupOutcome(str, Enum):
    """Reasons a building lookup did not produce metadata."""

    PARSING_FAILED = "parsing_failed"
    ADDRESS_NOT_FOUND = "address_not_found"


@dataclass(frozen=True)
class Subscriber:
    chat_id: int
    url: Optional[str]


@dataclass
class Listing:
    """A single apartment offering returned by the upstream feed."""

    external_id: str
    price_usd: Optional[Decimal]
    rent_type: str
    address: str
    photo_url: Optional[str]
    url: str
    created_at: datetime
    updated_at: datetime
    building_info: Optional[BuildingInfo] = None
    delivered_to: dict[int, bool] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    def was_delivered_to(self, recipient_id: int) -> bool:
        return bool(self.delivered_to.get(recipient_id))


@dataclass(frozen=True)
class AdmitDecision:
    """Result of the dedup gate for one listing and one recipient."""

    should_notify: bool
    listing: Listing


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    PERMANENT_FAILURE = "permanent_failure"
    TRANSIENT_FAILURE = "transient_failure"


@dataclass(frozen=True)
class DeliveryOutcome:
    status: DeliveryStatus
    reason: Optional[str] = None
