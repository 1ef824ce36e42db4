"""Address parsing (core domain).

Upstream addresses look like ``[locality,] [type] street [type], number``.
The street type keyword is placed inconsistently: sometimes before the street
name ("улица Ленина"), sometimes after it ("Ленина улица"). Instead of a greedy
regex we scan the street segment for the two keyword slots explicitly and
apply a fixed tie-break:

- the keyword before the street name wins when present;
- otherwise the keyword after the street name is used (possibly absent).
"""

from __future__ import annotations

from typing import List, Optional

from core.models import StreetType, StructuredAddress

_KEYWORDS = {street_type.value: street_type for street_type in StreetType}


class AddressParseError(ValueError):
    """Raised when an address does not have the expected shape."""


def _keyword(token: str) -> Optional[StreetType]:
    return _KEYWORDS.get(token.lower())


def normalize_building_number(raw: str) -> str:
    """Strip whitespace and keep the leading alphanumeric run.

    ``"123 "`` and ``"1 23"`` both become ``"123"``; ``"10/2"`` becomes ``"10"``.
    """

    compact = "".join(raw.split())
    end = 0
    while end < len(compact) and compact[end].isalnum():
        end += 1
    return compact[:end]


def _split_street(tokens: List[str]) -> tuple[Optional[StreetType], Optional[StreetType], List[str]]:
    """Return (pre_keyword, post_keyword, street_tokens)."""

    pre = _keyword(tokens[0]) if len(tokens) > 1 else None
    start = 1 if pre else 0
    # The post slot only counts if something is still left for the name.
    post = _keyword(tokens[-1]) if len(tokens) - start > 1 else None
    end = len(tokens) - 1 if post else len(tokens)
    return pre, post, tokens[start:end]


def parse_address(raw: str) -> StructuredAddress:
    """Parse a free-text address into a StructuredAddress.

    Raises AddressParseError when no street or building number can be found.
    """

    segments = [segment.strip() for segment in raw.split(",")]
    if len(segments) < 2:
        raise AddressParseError(f"No building number separator in address: {raw!r}")

    # Anything before the street segment is a locality prefix ("Минск").
    street_segment = segments[-2]
    building_number = normalize_building_number(segments[-1])
    if not building_number:
        raise AddressParseError(f"No building number in address: {raw!r}")

    tokens = street_segment.split()
    if not tokens:
        raise AddressParseError(f"No street name in address: {raw!r}")

    pre, post, street_tokens = _split_street(tokens)
    street_type = pre if pre is not None else post

    return StructuredAddress(
        street_type=street_type,
        street=" ".join(street_tokens),
        building_number=building_number,
    )
