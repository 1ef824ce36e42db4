"""Onliner-to-core listing mapping adapter.

This keeps the upstream JSON payload shape out of the core pipeline.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from core.models import Listing

LOGGER = logging.getLogger(__name__)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    # Onliner sends offsets without a colon ("+0300").
    try:
        return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        LOGGER.warning("Unparseable timestamp in feed: %r", value)
        return None


def _price_usd(payload: dict) -> Optional[Decimal]:
    amount = payload.get("price")
    for key in ("converted", "USD", "amount"):
        if not isinstance(amount, dict):
            return None
        amount = amount.get(key)
    if amount is None:
        return None
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        LOGGER.warning("Unparseable USD price in feed: %r", amount)
        return None


def listing_from_payload(payload: dict) -> Optional[Listing]:
    """Build a core Listing from one ``apartments`` entry, or None if unusable."""

    external_id = payload.get("id")
    if external_id is None:
        LOGGER.warning("Skipping feed entry without id")
        return None

    location = payload.get("location")
    if not isinstance(location, dict):
        location = {}
    created_at = _parse_timestamp(payload.get("created_at")) or datetime.now(timezone.utc)
    updated_at = _parse_timestamp(payload.get("last_time_up")) or created_at

    raw = {key: value for key, value in payload.items() if key != "id"}
    return Listing(
        external_id=str(external_id),
        price_usd=_price_usd(payload),
        rent_type=str(payload.get("rent_type") or ""),
        address=str(location.get("address") or ""),
        photo_url=payload.get("photo"),
        url=str(payload.get("url") or ""),
        created_at=created_at,
        updated_at=updated_at,
        raw=raw,
    )


def listings_from_response(body: Any) -> List[Listing]:
    """Map a search response body to listings; a missing array means none."""

    if not isinstance(body, dict):
        raise ValueError(f"Unexpected search response type: {type(body).__name__}")

    entries: Iterable[dict] = body.get("apartments") or []
    if not isinstance(entries, list):
        raise ValueError(f"Unexpected apartments type: {type(entries).__name__}")
    listings: List[Listing] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            listing = listing_from_payload(entry)
        except (AttributeError, TypeError, ValueError) as exc:
            LOGGER.warning("Skipping malformed feed entry %r: %s", entry.get("id"), exc)
            continue
        if listing is not None:
            listings.append(listing)
    return listings
