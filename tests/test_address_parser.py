from __future__ import annotations

import pytest

from core.address_parser import AddressParseError, normalize_building_number, parse_address
from core.models import StreetType


def test_keyword_before_street_name() -> None:
    address = parse_address("улица Притыцкого, 34")
    assert address.street_type is StreetType.STREET
    assert address.street == "Притыцкого"
    assert address.building_number == "34"


def test_keyword_after_street_name() -> None:
    address = parse_address("Логойский тракт, 22")
    assert address.street_type is StreetType.TRACT
    assert address.street == "Логойский"
    assert address.building_number == "22"


def test_no_keyword_leaves_type_absent() -> None:
    address = parse_address("пр. Независимости, 10")
    assert address.street_type is None
    assert address.street == "пр. Независимости"
    assert address.building_number == "10"


def test_pre_keyword_wins_when_both_slots_are_keywords() -> None:
    address = parse_address("переулок Козлова проспект, 7")
    assert address.street_type is StreetType.LANE
    assert address.street == "Козлова"


def test_keyword_match_is_case_insensitive() -> None:
    address = parse_address("Проспект Победителей, 119")
    assert address.street_type is StreetType.AVENUE
    assert address.street == "Победителей"


def test_lone_keyword_is_the_street_name() -> None:
    address = parse_address("Тракт, 5")
    assert address.street_type is None
    assert address.street == "Тракт"


def test_locality_prefix_is_ignored() -> None:
    with_city = parse_address("Минск, улица Сурганова, 43")
    without_city = parse_address("улица Сурганова, 43")
    assert with_city == without_city


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123 ", "123"),
        ("1 23", "123"),
        ("10к2", "10к2"),
        ("10/2", "10"),
    ],
)
def test_building_number_normalization(raw: str, expected: str) -> None:
    assert normalize_building_number(raw) == expected
    assert parse_address(f"улица Есенина, {raw}").building_number == expected


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "улица Есенина 6",
        "улица Есенина, ",
        ", 10",
        "улица Есенина, /2",
    ],
)
def test_unparseable_addresses(raw: str) -> None:
    with pytest.raises(AddressParseError):
        parse_address(raw)
