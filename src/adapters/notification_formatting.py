"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.models import Listing

ROOM_RENT_TYPE = "room"


def format_rent_type(rent_type: str) -> str:
    """Return the human label for a rent type ("room", "2_rooms", ...)."""

    if rent_type == ROOM_RENT_TYPE:
        return "Комната"
    return "Комнаты: " + rent_type.split("_")[0]


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in local time as ``M/D/YYYY, h:MM:SS AM``."""

    local = value.astimezone()
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local:%M:%S} {suffix}"


def _format_price(price: Optional[Decimal]) -> str:
    return "?" if price is None else f"{price}"


def format_caption(listing: Listing) -> str:
    """Create the caption sent with the listing photo."""

    created_at = format_timestamp(listing.created_at)
    updated_at = format_timestamp(listing.updated_at)

    lines = [
        f"💵 ${_format_price(listing.price_usd)}",
        f"🚪 {format_rent_type(listing.rent_type)}",
        f"📍 {listing.address}",
    ]
    if listing.building_info:
        info = listing.building_info
        lines.append(f"Year build: {info.year}, floors: {info.floors}")

    lines.append(f"🌟 {created_at}")
    if updated_at != created_at:
        lines.append(f"♻️ {updated_at}")

    return "\n".join(lines)
