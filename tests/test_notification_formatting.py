from __future__ import annotations

from datetime import datetime, timedelta

from adapters.notification_formatting import format_caption, format_rent_type, format_timestamp
from core.models import BuildingInfo

from fakes import make_listing


def test_format_rent_type() -> None:
    assert format_rent_type("room") == "Комната"
    assert format_rent_type("1_room") == "Комнаты: 1"
    assert format_rent_type("3_rooms") == "Комнаты: 3"


def test_format_timestamp_uses_us_style() -> None:
    value = datetime(2024, 1, 2, 15, 4, 5).astimezone()
    assert format_timestamp(value) == "1/2/2024, 3:04:05 PM"

    midnight = datetime(2024, 12, 31, 0, 7, 9).astimezone()
    assert format_timestamp(midnight) == "12/31/2024, 12:07:09 AM"


def test_caption_with_building_info() -> None:
    listing = make_listing()
    listing.building_info = BuildingInfo(year=1975, floors=9)

    lines = format_caption(listing).split("\n")

    assert lines[0] == "💵 $350.00"
    assert lines[1] == "🚪 Комнаты: 1"
    assert lines[2] == "📍 пр. Независимости, 10"
    assert lines[3] == "Year build: 1975, floors: 9"
    assert lines[4].startswith("🌟 ")
    assert len(lines) == 5


def test_caption_adds_updated_line_only_when_different() -> None:
    listing = make_listing(rent_type="room")
    assert "♻️" not in format_caption(listing)
    assert "Year build" not in format_caption(listing)

    listing.updated_at = listing.created_at + timedelta(hours=2)
    caption = format_caption(listing)

    assert "🚪 Комната" in caption
    assert caption.split("\n")[-1] == f"♻️ {format_timestamp(listing.updated_at)}"
