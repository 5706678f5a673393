"""
Price Estimator
Suggested total and deposit for a draft booking. Advisory only: nothing here
writes to a record unless apply_estimate() is called explicitly.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Mapping, Union

from eventdesk.models import BarType, BookingRecord, FoodSource, coerce_bool, coerce_number, parse_enum

logger = logging.getLogger(__name__)

_UNIT = Decimal("1")


@dataclass(frozen=True)
class PricingRates:
    """House rates, whole currency units. Per-guest rates multiply the headcount."""
    base_venue_fee: Union[int, float] = 1000
    per_guest: Union[int, float] = 25
    open_bar_per_guest: Union[int, float] = 35
    catering_per_guest: Union[int, float] = 45
    parking_fee: Union[int, float] = 500
    tasting_per_guest: Union[int, float] = 20
    tour_per_guest: Union[int, float] = 15
    deposit_rate: Union[int, float] = 0.25
    # Charged when the client brings their own beer/wine. Shown on the
    # event sheet; not part of the estimate.
    uncorking_fee: Union[int, float] = 250


DEFAULT_RATES = PricingRates()


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def round_half_up(value: Any) -> int:
    """Round to the nearest whole unit, halves away from zero (437.5 -> 438)."""
    return int(_to_decimal(value).quantize(_UNIT, rounding=ROUND_HALF_UP))


def _read(draft: Any, name: str, camel: str) -> Any:
    if isinstance(draft, Mapping):
        return draft.get(name, draft.get(camel))
    return getattr(draft, name, None)


def estimate_total(draft: Union[BookingRecord, Mapping[str, Any], None], rates: PricingRates = DEFAULT_RATES) -> int:
    """
    Suggested total for a draft's service selections.

    Accepts a BookingRecord or a plain mapping (snake_case or camelCase keys).
    Missing fields count as their falsy/zero default, so this never fails.
    Catering is only charged when has_food is set, whatever food_source says.
    """
    if draft is None:
        draft = {}

    guests = Decimal(coerce_number(_read(draft, 'guests', 'guests'), integer=True))
    bar_type = parse_enum(BarType, _read(draft, 'bar_type', 'barType'))
    has_food = coerce_bool(_read(draft, 'has_food', 'hasFood'))
    food_source = parse_enum(FoodSource, _read(draft, 'food_source', 'foodSource'))

    total = _to_decimal(rates.base_venue_fee)
    total += guests * _to_decimal(rates.per_guest)
    if bar_type == BarType.OPEN:
        total += guests * _to_decimal(rates.open_bar_per_guest)
    if has_food and food_source == FoodSource.CATERED:
        total += guests * _to_decimal(rates.catering_per_guest)
    if coerce_bool(_read(draft, 'add_parking', 'addParking')):
        total += _to_decimal(rates.parking_fee)
    if coerce_bool(_read(draft, 'has_tasting', 'hasTasting')):
        total += guests * _to_decimal(rates.tasting_per_guest)
    if coerce_bool(_read(draft, 'has_tour', 'hasTour')):
        total += guests * _to_decimal(rates.tour_per_guest)

    return round_half_up(total)


def estimate_deposit(suggested_total: Any, rate: Union[int, float] = DEFAULT_RATES.deposit_rate) -> int:
    """Suggested retainer: total × rate, rounded half-up (1750 -> 438)."""
    total = Decimal(coerce_number(suggested_total))
    return round_half_up(total * _to_decimal(rate))


def apply_estimate(record: BookingRecord, rates: PricingRates = DEFAULT_RATES) -> BookingRecord:
    """
    Overwrite the record's total and deposit with the suggestion.
    Payment flags are left exactly as they were.
    """
    total = estimate_total(record, rates)
    record.total_amount = total
    record.deposit_amount = estimate_deposit(total, rates.deposit_rate)
    logger.info(f"Applied estimate to booking {record.id}: total={record.total_amount} deposit={record.deposit_amount}")
    return record
