"""
Data Models
The booking record, its enumerations and the derived dashboard statistics.
Pure Python objects, no database logic.
"""

import math
import re
from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from eventdesk.engine.ids import generate_safe_id
from eventdesk.engine.timefmt import add_hours

EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

DEFAULT_EVENT_TYPE = 'Tasting Room Takeover'
DEFAULT_GUESTS = 10
DEFAULT_START_TIME = '12:00'
DEFAULT_END_TIME = '14:00'

# Offered as choices in the booking forms; event_type itself is free text.
EVENT_TYPE_SUGGESTIONS = [
    'Tasting Room Takeover',
    'Wedding',
    'Rehearsal Dinner',
    'Corporate',
    'Birthday',
    'Private Tasting',
    'Holiday Party',
    'Fundraiser',
]


class BarType(str, Enum):
    CASH = 'Cash Bar'
    OPEN = 'Open Bar'
    NONE = 'None'


class FoodSource(str, Enum):
    CATERED = 'Catered (In-house)'
    BRING_YOUR_OWN = 'Bring Your Own'


class FoodServiceType(str, Enum):
    BUFFET = 'Buffet'
    PASSED = 'Passed Apps'
    FULL_SERVICE = 'Full-Service'


def parse_enum(enum_cls, value, default=None):
    """Resolve an enum member from a member, its value or its name. Unknown -> default."""
    if value is None or value == '':
        return default
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text == member.value or text.upper() == member.name:
            return member
    return default


def coerce_number(value: Any, integer: bool = False) -> Union[int, float]:
    """
    Numeric coercion for form input: empty, None, non-numeric, NaN, infinite
    or negative values become 0. Whole floats collapse to int.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0
    if integer or number.is_integer():
        return int(number)
    return number


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y', 'on')
    return bool(value)


@dataclass
class BookingRecord:
    """One requested or confirmed event engagement at the venue."""
    id: str = ''
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    phone: str = ''
    event_type: str = DEFAULT_EVENT_TYPE
    date_requested: Optional[str] = None  # YYYY-MM-DD
    time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME
    duration: Optional[float] = None  # legacy schema, hours
    guests: int = DEFAULT_GUESTS
    total_amount: Union[int, float] = 0
    deposit_amount: Union[int, float] = 0
    deposit_paid: bool = False
    balance_paid: bool = False
    contacted: bool = False
    bar_type: BarType = BarType.CASH
    beer_wine_offered: bool = True
    has_food: bool = False
    food_source: Optional[FoodSource] = None
    food_service_type: Optional[FoodServiceType] = None
    add_parking: bool = False
    has_tasting: bool = False
    has_tour: bool = False
    notes: str = ''
    # Set only after a successful calendar push
    pushed_to_calendar: bool = False
    calendar_pushed_at: Optional[datetime] = None
    google_event_id: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_new(self) -> bool:
        return not self.contacted

    @property
    def has_pending_collections(self) -> bool:
        return not self.deposit_paid or not self.balance_paid

    def apply_edits(self, updates: Dict[str, Any]) -> 'BookingRecord':
        """
        Apply staff edits in place. The id is immutable; unknown fields raise
        ValueError. Values are coerced exactly as when reading a stored row.
        """
        if 'id' in updates:
            raise ValueError("Booking id cannot be changed")
        invalid = set(updates) - EDITABLE_FIELDS
        if invalid:
            raise ValueError(f"Invalid booking fields: {invalid}")
        for key, value in updates.items():
            setattr(self, key, _coerce_field(key, value))
        return self

    def to_row(self) -> Dict[str, Any]:
        """Flat dict for the record store; enums are stored as their values."""
        row = {}
        for f in fields(self):
            value = getattr(self, f.name)
            row[f.name] = value.value if isinstance(value, Enum) else value
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'BookingRecord':
        """
        Build a record from a stored row. Accepts snake_case or camelCase keys,
        fills defaults for missing ones and ignores columns it does not know.
        Legacy rows with a duration but no end time get one derived.
        """
        data = {}
        for key, value in row.items():
            name = _CAMEL_TO_SNAKE.get(key, key)
            if name in FIELD_NAMES:
                data[name] = _coerce_field(name, value)

        if not data.get('end_time') and data.get('duration') is not None and data.get('time'):
            try:
                data['end_time'] = add_hours(data['time'], data['duration'])
            except (ValueError, TypeError):
                pass

        return cls(**data)


FIELD_NAMES = frozenset(f.name for f in fields(BookingRecord))
EDITABLE_FIELDS = FIELD_NAMES - {'id'}

_NUMERIC_FIELDS = {'total_amount', 'deposit_amount'}
_BOOL_FIELDS = {
    'deposit_paid', 'balance_paid', 'contacted', 'beer_wine_offered', 'has_food',
    'add_parking', 'has_tasting', 'has_tour', 'pushed_to_calendar',
}
_STR_FIELDS = {
    'id', 'first_name', 'last_name', 'email', 'phone', 'event_type', 'time', 'end_time', 'notes',
}


def _snake_to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


_CAMEL_TO_SNAKE = {_snake_to_camel(name): name for name in FIELD_NAMES}


def _coerce_field(name: str, value: Any) -> Any:
    if name == 'guests':
        return coerce_number(value, integer=True)
    if name in _NUMERIC_FIELDS:
        return coerce_number(value)
    if name == 'duration':
        return None if value is None or value == '' else coerce_number(value)
    if name in _BOOL_FIELDS:
        return coerce_bool(value)
    if name == 'bar_type':
        return parse_enum(BarType, value, BarType.CASH)
    if name == 'food_source':
        return parse_enum(FoodSource, value)
    if name == 'food_service_type':
        return parse_enum(FoodServiceType, value)
    if name == 'date_requested':
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return value or None
    if name in _STR_FIELDS:
        return '' if value is None else str(value)
    return value


def new_draft(event_type: str = DEFAULT_EVENT_TYPE, **overrides) -> BookingRecord:
    """
    A fresh booking with schema defaults and a newly generated id.
    `overrides` are applied with the same coercion as staff edits.
    """
    record = BookingRecord(id=generate_safe_id(), event_type=event_type or DEFAULT_EVENT_TYPE)
    if overrides:
        record.apply_edits(overrides)
    return record


def validate_contact(record: BookingRecord) -> None:
    """
    Client-initiated bookings must carry contact details.
    Raises ValueError naming every missing or malformed field.
    """
    problems: List[str] = []
    for name in ('first_name', 'last_name', 'email', 'phone'):
        if not str(getattr(record, name) or '').strip():
            problems.append(name)
    if 'email' not in problems and not EMAIL_RE.match(record.email.strip()):
        problems.append('email (invalid format)')
    if problems:
        raise ValueError(f"Missing or invalid contact fields: {', '.join(problems)}")


@dataclass(frozen=True)
class DashboardStats:
    """Summary counters for the dashboard; computed on every read, never stored."""
    total_events: int = 0
    total_revenue: Union[int, float] = 0
    new_requests: int = 0
    pending_deposits: int = 0
