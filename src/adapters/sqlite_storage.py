"""SQLite storage adapter.

Implements the core session, listing, building and lookup-log ports using a
simple SQLite database. Listings are stored as JSON documents keyed by the
upstream id, which keeps the merge-on-upsert behaviour of a document store.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from core.models import (
    BuildingInfo,
    BuildingRecord,
    Listing,
    LookupOutcome,
    StreetType,
    StructuredAddress,
    Subscriber,
)


def _street_type_key(street_type: Optional[StreetType]) -> str:
    # NULLs never collide in a UNIQUE index, so an absent type is stored as "".
    return street_type.value if street_type else ""


def listing_to_document(listing: Listing) -> dict[str, Any]:
    """Serialize a Listing into the JSON document stored in the listings table."""

    document = dict(listing.raw)
    document.update(
        {
            "external_id": listing.external_id,
            "price_usd": str(listing.price_usd) if listing.price_usd is not None else None,
            "rent_type": listing.rent_type,
            "address": listing.address,
            "photo_url": listing.photo_url,
            "url": listing.url,
            "created_at": listing.created_at.isoformat(),
            "updated_at": listing.updated_at.isoformat(),
            "building_info": (
                {"year": listing.building_info.year, "floors": listing.building_info.floors}
                if listing.building_info
                else None
            ),
            "delivered_to": {str(chat_id): True for chat_id, sent in listing.delivered_to.items() if sent},
        }
    )
    return document


def listing_from_document(document: dict[str, Any]) -> Listing:
    """Rebuild a Listing from a stored JSON document."""

    info = document.get("building_info")
    price = document.get("price_usd")
    return Listing(
        external_id=document["external_id"],
        price_usd=Decimal(price) if price is not None else None,
        rent_type=document.get("rent_type", ""),
        address=document.get("address", ""),
        photo_url=document.get("photo_url"),
        url=document.get("url", ""),
        created_at=datetime.fromisoformat(document["created_at"]),
        updated_at=datetime.fromisoformat(document["updated_at"]),
        building_info=BuildingInfo(year=info["year"], floors=info["floors"]) if info else None,
        delivered_to={int(chat_id): True for chat_id in document.get("delivered_to", {})},
        raw=document,
    )


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the core storage ports."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - sessions: one row per chat with its saved search URL
        - listings: JSON documents keyed by the upstream listing id
        - buildings: static building metadata keyed by the parsed address
        - lookup_failures: distinct building lookup misses
        """

        with self._connect() as conn:
            # sessions rows are created on first interaction and never deleted.
            # Fields:
            # - chat_id: Telegram chat id (PRIMARY KEY)
            # - url: saved Onliner search URL, NULL when unsubscribed
            # - updated_at: last time the URL changed
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    chat_id INTEGER PRIMARY KEY,
                    url TEXT,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            # listings keeps the merged feed payload plus delivered_to.
            # Fields:
            # - external_id: upstream listing id (PRIMARY KEY)
            # - document: JSON document, merged on every sighting
            # - updated_at: last write timestamp
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS listings (
                    external_id TEXT PRIMARY KEY,
                    document TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            # buildings is seeded once from the reference dataset.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS buildings (
                    street_type TEXT NOT NULL,
                    street TEXT NOT NULL,
                    building_number TEXT NOT NULL,
                    year INTEGER NOT NULL,
                    floors INTEGER NOT NULL,
                    types TEXT NOT NULL,
                    PRIMARY KEY (street_type, street, building_number)
                )
                """
            )
            # lookup_failures is a diagnostic trail, one row per (address, reason).
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS lookup_failures (
                    address TEXT NOT NULL,
                    reason TEXT NOT NULL,
                    first_seen TIMESTAMP NOT NULL,
                    PRIMARY KEY (address, reason)
                )
                """
            )

    # Sessions

    def get_subscriber(self, chat_id: int) -> Optional[Subscriber]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT chat_id, url FROM sessions WHERE chat_id = ?",
                (chat_id,),
            ).fetchone()
        return Subscriber(chat_id=row["chat_id"], url=row["url"]) if row else None

    def ensure_session(self, chat_id: int) -> None:
        """Create an empty session row for a chat unless one exists."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO sessions (chat_id, url, updated_at)
                VALUES (?, NULL, ?)
                """,
                (chat_id, now.isoformat()),
            )

    def set_url(self, chat_id: int, url: Optional[str]) -> None:
        """Upsert the saved search URL for a chat."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sessions (chat_id, url, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(chat_id) DO UPDATE SET
                    url = excluded.url,
                    updated_at = excluded.updated_at
                """,
                (chat_id, url, now.isoformat()),
            )

    def clear_url(self, chat_id: int) -> None:
        self.set_url(chat_id, None)

    def list_active_subscribers(self) -> List[Subscriber]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT chat_id, url FROM sessions WHERE url IS NOT NULL ORDER BY chat_id"
            ).fetchall()
        return [Subscriber(chat_id=row["chat_id"], url=row["url"]) for row in rows]

    # Listings

    def find_listing(self, external_id: str) -> Optional[Listing]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT document FROM listings WHERE external_id = ?",
                (external_id,),
            ).fetchone()
        return listing_from_document(json.loads(row["document"])) if row else None

    def upsert_listing(self, listing: Listing) -> None:
        """Merge the listing into the stored document, creating it if needed."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            row = conn.execute(
                "SELECT document FROM listings WHERE external_id = ?",
                (listing.external_id,),
            ).fetchone()
            document = json.loads(row["document"]) if row else {}
            document.update(listing_to_document(listing))
            conn.execute(
                """
                INSERT INTO listings (external_id, document, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(external_id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = excluded.updated_at
                """,
                (listing.external_id, json.dumps(document, ensure_ascii=False), now.isoformat()),
            )

    # Buildings

    def has_buildings(self) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM buildings LIMIT 1").fetchone()
        return row is not None

    def count_buildings(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM buildings").fetchone()
        return int(row["total"])

    def insert_buildings(self, records: Iterable[BuildingRecord]) -> int:
        """Insert building records, ignoring addresses that already exist."""

        inserted = 0
        with self._connect() as conn:
            for record in records:
                cur = conn.execute(
                    """
                    INSERT OR IGNORE INTO buildings (
                        street_type,
                        street,
                        building_number,
                        year,
                        floors,
                        types
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        _street_type_key(record.address.street_type),
                        record.address.street,
                        record.address.building_number,
                        record.year,
                        record.floors,
                        json.dumps(sorted(record.types), ensure_ascii=False),
                    ),
                )
                inserted += cur.rowcount
        return inserted

    def find_building(self, address: StructuredAddress) -> Optional[BuildingRecord]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT year, floors, types FROM buildings
                WHERE street_type = ? AND street = ? AND building_number = ?
                """,
                (_street_type_key(address.street_type), address.street, address.building_number),
            ).fetchone()
        if not row:
            return None
        return BuildingRecord(
            address=address,
            year=int(row["year"]),
            floors=int(row["floors"]),
            types=frozenset(json.loads(row["types"])),
        )

    # Lookup log

    def record_lookup_failure(self, address: str, reason: LookupOutcome) -> None:
        """Insert a lookup miss if this (address, reason) pair is new."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO lookup_failures (address, reason, first_seen)
                VALUES (?, ?, ?)
                """,
                (address, reason.value, now.isoformat()),
            )

    def count_lookup_failures(self, address: Optional[str] = None) -> int:
        with self._connect() as conn:
            if address is None:
                row = conn.execute("SELECT COUNT(*) AS total FROM lookup_failures").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) AS total FROM lookup_failures WHERE address = ?",
                    (address,),
                ).fetchone()
        return int(row["total"])
