"""
Aggregation & Filtering Engine
Dashboard statistics and filtered views over an in-memory booking collection.

Every public function starts with sanitize(), so the rest of the module only
ever sees a clean list of BookingRecord objects. Inputs are never mutated.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from eventdesk.engine.pricing import round_half_up
from eventdesk.models import BookingRecord, DashboardStats, coerce_number

logger = logging.getLogger(__name__)

MODE_ALL = 'all'
MODE_NEW = 'new'
MODE_PENDING_DEPOSIT = 'pending_deposit'
FILTER_MODES = (MODE_ALL, MODE_NEW, MODE_PENDING_DEPOSIT)

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

_EPOCH = date(1970, 1, 1)


def _amount(value: Any) -> Decimal:
    # Decimal from the decimal text, so cent amounts add exactly in any order
    return Decimal(str(coerce_number(value)))


def _plain(total: Decimal) -> Union[int, float]:
    return int(total) if total == total.to_integral_value() else float(total)


def sanitize(records: Optional[Iterable[Any]]) -> List[BookingRecord]:
    """
    Drop anything that is not a booking. Mappings (raw store rows) are
    converted; None and other stray values are skipped.
    """
    if records is None:
        return []
    clean = []
    skipped = 0
    for item in records:
        if isinstance(item, BookingRecord):
            clean.append(item)
        elif isinstance(item, Mapping):
            clean.append(BookingRecord.from_row(item))
        else:
            skipped += 1
    if skipped:
        logger.debug(f"sanitize: skipped {skipped} malformed entries")
    return clean


def parse_booking_date(value: Union[str, date, None]) -> Optional[date]:
    """Calendar date of a booking, or None when missing or unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def compute_stats(records: Optional[Iterable[Any]]) -> DashboardStats:
    """
    Totals for the dashboard cards. Only counts and sums, so the result is
    the same for any ordering of the same records.
    """
    total_events = 0
    total_revenue = Decimal(0)
    new_requests = 0
    pending_deposits = 0

    for record in sanitize(records):
        total_events += 1
        total_revenue += _amount(record.total_amount)
        if not record.contacted:
            new_requests += 1
        # Named for the old schema; counts outstanding balances too
        if not record.deposit_paid or not record.balance_paid:
            pending_deposits += 1

    return DashboardStats(
        total_events=total_events,
        total_revenue=_plain(total_revenue),
        new_requests=new_requests,
        pending_deposits=pending_deposits,
    )


def filter_and_sort(records: Optional[Iterable[Any]], mode: str = MODE_ALL) -> List[BookingRecord]:
    """
    Bookings for a dashboard view, earliest date first.

    Modes: 'all', 'new' (not yet contacted), 'pending_deposit' (deposit or
    balance outstanding). Unknown modes behave as 'all'. Bookings without a
    usable date sort first; equal dates keep their original order.
    """
    result = sanitize(records)

    if mode == MODE_NEW:
        result = [r for r in result if not r.contacted]
    elif mode == MODE_PENDING_DEPOSIT:
        result = [r for r in result if not r.deposit_paid or not r.balance_paid]
    elif mode != MODE_ALL:
        logger.debug(f"filter_and_sort: unknown mode {mode!r}, showing all")

    # sorted() is stable
    return sorted(result, key=lambda r: parse_booking_date(r.date_requested) or _EPOCH)


def monthly_revenue(records: Optional[Iterable[Any]], year: Optional[int] = None) -> Dict[str, Union[int, float]]:
    """Revenue per calendar month (Jan..Dec), optionally for one year only."""
    totals: Dict[str, Decimal] = {month: Decimal(0) for month in MONTHS}
    for record in sanitize(records):
        day = parse_booking_date(record.date_requested)
        if day is None or (year is not None and day.year != year):
            continue
        totals[MONTHS[day.month - 1]] += _amount(record.total_amount)
    return {month: _plain(total) for month, total in totals.items()}


def average_revenue(records: Optional[Iterable[Any]]) -> int:
    """Mean booking value rounded half-up to whole units; 0 for an empty collection."""
    clean = sanitize(records)
    if not clean:
        return 0
    return round_half_up(sum((_amount(r.total_amount) for r in clean), Decimal(0)) / len(clean))
