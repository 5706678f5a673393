"""
Event Order Sheet
Printable plain-text summary of one booking for the floor staff.
"""

from datetime import datetime
from typing import List, Optional

from eventdesk.engine.pricing import DEFAULT_RATES, PricingRates
from eventdesk.engine.stats import parse_booking_date
from eventdesk.engine.timefmt import format_time_window
from eventdesk.models import BookingRecord

WIDTH = 72


def _heading(title: str) -> List[str]:
    return ["", title.upper(), "-" * len(title)]


def format_money(amount) -> str:
    """Whole amounts without cents: 2313 -> $2,313, 437.5 -> $437.50."""
    return f"${amount:,.0f}" if float(amount).is_integer() else f"${amount:,.2f}"


def short_system_id(booking_id: str) -> str:
    """First segment of the id, enough to find the booking again."""
    return (booking_id or '').split('-')[0] or booking_id


def render_event_sheet(
    record: BookingRecord,
    briefing: Optional[str] = None,
    rates: PricingRates = DEFAULT_RATES,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render the event order as text, one section per block of the printed sheet."""
    day = parse_booking_date(record.date_requested)
    date_str = day.strftime('%B %d, %Y').replace(' 0', ' ') if day else 'Date TBD'
    generated_at = generated_at or datetime.now()

    lines = [
        "=" * WIDTH,
        "EVENT ORDER",
        "=" * WIDTH,
        f"{date_str}  |  {format_time_window(record.time, record.end_time)}",
    ]

    lines += _heading("Guest Credentials")
    lines += [record.full_name or '(no name)', record.email or '(no email)', record.phone or '(no phone)']

    if record.beer_wine_offered:
        beverage = "Svc Fee"
    else:
        beverage = f"Uncork Fee ({format_money(rates.uncorking_fee)})"
    lines += _heading("Engagement Profile")
    lines += [
        f"Event Type:   {record.event_type}",
        f"Manifest:     {record.guests} Guests",
        f"Bar Service:  {record.bar_type.value} ({beverage})",
    ]

    lines += _heading("Food & Provisioning")
    lines.append(f"Food Service: {'YES' if record.has_food else 'NO'}")
    if record.has_food:
        lines.append(f"Source:       {record.food_source.value if record.food_source else 'TBD'}")
        lines.append(f"Style:        {record.food_service_type.value if record.food_service_type else 'TBD'}")
    usage = ' '.join(name for name, on in (('TOUR', record.has_tour), ('TASTING', record.has_tasting)) if on)
    lines.append(f"Facility Usage: {usage or 'NONE'}")

    lines += _heading("Logistics & Account")
    lines += [
        f"Parking Upgrade: {'YES (' + format_money(rates.parking_fee) + ')' if record.add_parking else 'NO'}",
        f"Total:           {format_money(record.total_amount)}",
        f"Deposit:         {format_money(record.deposit_amount)} {'SETTLED' if record.deposit_paid else 'OUTSTANDING'}",
        f"Final Balance:   {'SETTLED' if record.balance_paid else 'OUTSTANDING'}",
    ]
    if record.pushed_to_calendar:
        lines.append(f"Calendar:        pushed ({record.google_event_id})")

    if briefing:
        lines += _heading("Front of House Intelligence Briefing")
        lines.append(briefing.strip())

    lines += _heading("Service Directives")
    lines.append(record.notes or 'No custom directives filed for this booking.')

    lines += [
        "",
        "-" * WIDTH,
        f"Authorization Copy | Generated: {generated_at:%Y-%m-%d %H:%M} | System ID: {short_system_id(record.id)}",
    ]
    return "\n".join(lines) + "\n"
