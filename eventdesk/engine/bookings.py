"""
Booking Store - Record Store Adapters
CRUD for bookings. BookingStore talks to PostgreSQL; LocalBookingStore keeps
records in memory for local mode. Both emit the same bus events.

The database URL is handed in by the caller (the CLI builds the store from
config); nothing here reads configuration on its own.
"""

import logging
from typing import Dict, List, Optional

import psycopg2

from eventdesk.db.connection import get_db_cursor
from eventdesk.models import BookingRecord, FIELD_NAMES
from eventdesk.bus.events import bus, EVENT_BOOKING_CREATED, EVENT_BOOKING_UPDATED, EVENT_BOOKING_DELETED
from eventdesk.engine.stats import filter_and_sort

logger = logging.getLogger(__name__)

# Column order for INSERT / upsert; names come from the dataclass, never from input
_COLUMNS = sorted(FIELD_NAMES)

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS events (
        id                 TEXT PRIMARY KEY,
        first_name         TEXT NOT NULL DEFAULT '',
        last_name          TEXT NOT NULL DEFAULT '',
        email              TEXT NOT NULL DEFAULT '',
        phone              TEXT NOT NULL DEFAULT '',
        event_type         TEXT NOT NULL DEFAULT '',
        date_requested     DATE,
        time               TEXT NOT NULL DEFAULT '',
        end_time           TEXT NOT NULL DEFAULT '',
        duration           NUMERIC,
        guests             INTEGER NOT NULL DEFAULT 0 CHECK (guests >= 0),
        total_amount       NUMERIC NOT NULL DEFAULT 0 CHECK (total_amount >= 0),
        deposit_amount     NUMERIC NOT NULL DEFAULT 0 CHECK (deposit_amount >= 0),
        deposit_paid       BOOLEAN NOT NULL DEFAULT FALSE,
        balance_paid       BOOLEAN NOT NULL DEFAULT FALSE,
        contacted          BOOLEAN NOT NULL DEFAULT FALSE,
        bar_type           TEXT NOT NULL DEFAULT 'Cash Bar',
        beer_wine_offered  BOOLEAN NOT NULL DEFAULT TRUE,
        has_food           BOOLEAN NOT NULL DEFAULT FALSE,
        food_source        TEXT,
        food_service_type  TEXT,
        add_parking        BOOLEAN NOT NULL DEFAULT FALSE,
        has_tasting        BOOLEAN NOT NULL DEFAULT FALSE,
        has_tour           BOOLEAN NOT NULL DEFAULT FALSE,
        notes              TEXT NOT NULL DEFAULT '',
        pushed_to_calendar BOOLEAN NOT NULL DEFAULT FALSE,
        calendar_pushed_at TIMESTAMPTZ,
        google_event_id    TEXT
    )
"""


def _row_params(record: BookingRecord) -> Dict:
    row = record.to_row()
    # An empty string is not a valid DATE
    if not row.get('date_requested'):
        row['date_requested'] = None
    return row


class BookingStore:
    """PostgreSQL-backed record store (table 'events')."""

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("BookingStore needs a database URL")
        self.database_url = database_url

    def _cursor(self):
        return get_db_cursor(self.database_url)

    def ensure_schema(self) -> None:
        """Create the events table if it does not exist."""
        try:
            with self._cursor() as cur:
                cur.execute(SCHEMA_SQL)
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to create schema: {e}") from e
        logger.info("Ensured events table exists")

    def list_all(self) -> List[BookingRecord]:
        """All bookings, earliest requested date first."""
        try:
            with self._cursor() as cur:
                cur.execute("""
                    SELECT * FROM events
                    ORDER BY date_requested ASC NULLS FIRST
                """)
                rows = cur.fetchall()
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to load bookings: {e}") from e

        logger.debug(f"list_all: {len(rows)} bookings")
        return [BookingRecord.from_row(row) for row in rows]

    def get(self, booking_id: str) -> Optional[BookingRecord]:
        """Get booking by ID."""
        try:
            with self._cursor() as cur:
                cur.execute("SELECT * FROM events WHERE id = %s", (booking_id,))
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to load booking {booking_id}: {e}") from e

        if row:
            return BookingRecord.from_row(row)
        logger.debug(f"get: booking_id={booking_id} not found")
        return None

    def insert(self, record: BookingRecord) -> None:
        """Insert a new booking (public inquiries go through here)."""
        columns = ', '.join(_COLUMNS)
        values = ', '.join(f"%({c})s" for c in _COLUMNS)
        try:
            with self._cursor() as cur:
                cur.execute(f"INSERT INTO events ({columns}) VALUES ({values})", _row_params(record))
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to insert booking {record.id}: {e}") from e

        logger.info(f"Inserted booking {record.id}: {record.full_name}")
        bus.emit(EVENT_BOOKING_CREATED, {'booking_id': record.id, 'booking': record})

    def upsert(self, record: BookingRecord) -> BookingRecord:
        """Insert or overwrite a booking by id. Last writer wins."""
        columns = ', '.join(_COLUMNS)
        values = ', '.join(f"%({c})s" for c in _COLUMNS)
        assignments = ', '.join(f"{c} = EXCLUDED.{c}" for c in _COLUMNS if c != 'id')
        try:
            with self._cursor() as cur:
                cur.execute(f"""
                    INSERT INTO events ({columns}) VALUES ({values})
                    ON CONFLICT (id) DO UPDATE SET {assignments}
                    RETURNING (xmax = 0) AS inserted
                """, _row_params(record))
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to save booking {record.id}: {e}") from e

        created = bool(row and row.get('inserted'))
        logger.info(f"{'Created' if created else 'Updated'} booking {record.id}")
        bus.emit(EVENT_BOOKING_CREATED if created else EVENT_BOOKING_UPDATED,
                 {'booking_id': record.id, 'booking': record})
        return record

    def delete(self, booking_id: str) -> bool:
        """
        Permanently delete a booking.
        Returns: True if deleted, False if not found
        """
        try:
            with self._cursor() as cur:
                cur.execute("DELETE FROM events WHERE id = %s", (booking_id,))
                deleted = cur.rowcount > 0
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to delete booking {booking_id}: {e}") from e

        if deleted:
            logger.info(f"Deleted booking {booking_id}")
            bus.emit(EVENT_BOOKING_DELETED, {'booking_id': booking_id})
        return deleted


class LocalBookingStore:
    """In-memory store with the BookingStore interface, used in local mode."""

    def __init__(self, records: Optional[List[BookingRecord]] = None):
        self._records: Dict[str, BookingRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    def ensure_schema(self) -> None:
        pass

    def list_all(self) -> List[BookingRecord]:
        return filter_and_sort(list(self._records.values()))

    def get(self, booking_id: str) -> Optional[BookingRecord]:
        return self._records.get(booking_id)

    def insert(self, record: BookingRecord) -> None:
        if record.id in self._records:
            raise RuntimeError(f"Booking {record.id} already exists")
        self._records[record.id] = record
        logger.info(f"Inserted booking {record.id} (local)")
        bus.emit(EVENT_BOOKING_CREATED, {'booking_id': record.id, 'booking': record})

    def upsert(self, record: BookingRecord) -> BookingRecord:
        created = record.id not in self._records
        self._records[record.id] = record
        bus.emit(EVENT_BOOKING_CREATED if created else EVENT_BOOKING_UPDATED,
                 {'booking_id': record.id, 'booking': record})
        return record

    def delete(self, booking_id: str) -> bool:
        if self._records.pop(booking_id, None) is None:
            return False
        bus.emit(EVENT_BOOKING_DELETED, {'booking_id': booking_id})
        return True


def open_store(database_url: Optional[str]):
    """BookingStore when a database URL is given, otherwise an empty local store."""
    if database_url:
        return BookingStore(database_url)
    logger.info("No database configured — using local in-memory store")
    return LocalBookingStore()
