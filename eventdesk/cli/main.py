#!/usr/bin/env python3
"""
EventDesk Terminal CLI
Command-line interface for booking operations at the distillery.

The group callback is the composition root: it builds the record store from
config once and hands it to every command through the click context.
"""

import logging
import re
from datetime import date
from typing import List, Optional

import click

from eventdesk.config import config
from eventdesk.engine import pricing, stats
from eventdesk.engine.bookings import LocalBookingStore, open_store
from eventdesk.engine.sheet import format_money, render_event_sheet
from eventdesk.engine.timefmt import format_time_window
from eventdesk.logging_config import configure_logging, log_call
from eventdesk.models import (
    EMAIL_RE, EVENT_TYPE_SUGGESTIONS, BarType, BookingRecord, FoodServiceType, FoodSource,
    new_draft, parse_enum, validate_contact,
)

_TIME_RE = re.compile(r'^([01]?\d|2[0-3]):[0-5]\d$')

AI_MODEL_CHOICES = ['claude', 'deepseek-chat', 'deepseek-reasoner']
BAR_CHOICES = ['cash', 'open', 'none']
FOOD_SOURCE_CHOICES = ['catered', 'bring_your_own']
FOOD_SERVICE_CHOICES = ['buffet', 'passed', 'full_service']

LOCAL_MODE_BANNER = "Sync disrupted. Local mode active."


# =============================================================================
# PROMPT HELPERS
# =============================================================================

@log_call
def _prompt_date(label: str, default: Optional[date] = None) -> Optional[str]:
    """Prompt for a date, re-prompting on bad format. Returns None if left blank."""
    logger = logging.getLogger("eventdesk")
    default_str = str(default) if default else ""
    while True:
        raw = click.prompt(label, default=default_str, show_default=bool(default_str)) or ""
        if not raw:
            return None
        try:
            return date.fromisoformat(raw).isoformat()
        except ValueError:
            logger.debug(f"_prompt_date | rejected input={raw!r}")
            click.echo("  Invalid format — please use YYYY-MM-DD.", err=True)


@log_call
def _prompt_time(label: str, default: str) -> str:
    """Prompt for a 24-hour HH:MM time, re-prompting on bad format."""
    logger = logging.getLogger("eventdesk")
    while True:
        raw = click.prompt(label, default=default).strip()
        if _TIME_RE.match(raw):
            hours, minutes = raw.split(':')
            return f"{int(hours):02d}:{minutes}"
        logger.debug(f"_prompt_time | rejected input={raw!r}")
        click.echo("  Invalid time — please use 24-hour HH:MM.", err=True)


@log_call
def _prompt_email(required: bool = False) -> Optional[str]:
    """Prompt for an email address, re-prompting on bad format."""
    logger = logging.getLogger("eventdesk")
    while True:
        raw = click.prompt("Email", default="", show_default=False) or None
        if raw is None:
            if not required:
                return None
            click.echo("  Email is required.", err=True)
            continue
        if EMAIL_RE.match(raw):
            return raw
        logger.debug(f"_prompt_email | rejected input={raw!r}")
        click.echo("  Invalid email address — please try again.", err=True)


def _prompt_services(record: BookingRecord, include_bar: bool = True) -> None:
    """Ask for the service selections that drive the price estimate."""
    if include_bar:
        bar = click.prompt("Bar type", type=click.Choice(BAR_CHOICES, case_sensitive=False), default="cash")
        record.bar_type = parse_enum(BarType, bar, BarType.CASH)
        record.beer_wine_offered = click.confirm("Beer/wine service from the venue? (No = uncorking fee)", default=True)

    record.has_food = click.confirm("Food service?", default=False)
    if record.has_food:
        source = click.prompt("Food source", type=click.Choice(FOOD_SOURCE_CHOICES, case_sensitive=False),
                              default="catered")
        service = click.prompt("Service style", type=click.Choice(FOOD_SERVICE_CHOICES, case_sensitive=False),
                               default="buffet")
        record.food_source = parse_enum(FoodSource, source)
        record.food_service_type = parse_enum(FoodServiceType, service)
    else:
        record.food_source = None
        record.food_service_type = None

    record.add_parking = click.confirm("Add parking?", default=False)
    record.has_tasting = click.confirm("Include a tasting?", default=False)
    record.has_tour = click.confirm("Include a tour?", default=False)


# =============================================================================
# STORE ACCESS
# =============================================================================

def _store(ctx: click.Context):
    return ctx.obj['store']


def _load_bookings(ctx: click.Context) -> List[BookingRecord]:
    """All bookings; on a store failure, warn and carry on with an empty local view."""
    try:
        return _store(ctx).list_all()
    except RuntimeError as e:
        logging.getLogger("eventdesk").error(f"Failed to load bookings: {e}")
        click.echo(f"⚠️  {LOCAL_MODE_BANNER} ({e})", err=True)
        return []


def _get_booking(ctx: click.Context, booking_id: str) -> Optional[BookingRecord]:
    booking = _store(ctx).get(booking_id)
    if booking is None:
        logging.getLogger("eventdesk").warning(f"booking_id={booking_id} not found")
        click.echo(f"Booking {booking_id} not found.", err=True)
    return booking


@click.group()
@click.pass_context
def cli(ctx):
    """EventDesk - Private Event Bookings for the Distillery"""
    configure_logging()
    ctx.ensure_object(dict)
    if 'store' not in ctx.obj:
        ctx.obj['store'] = open_store(config.DATABASE_URL)
    ctx.obj.setdefault('rates', config.pricing_rates())


@cli.command('init-db')
@click.pass_context
@log_call
def init_db(ctx):
    """Create the bookings table if it does not exist"""
    store = _store(ctx)
    if isinstance(store, LocalBookingStore):
        click.echo("No DATABASE_URL configured — nothing to initialise.", err=True)
        return
    try:
        store.ensure_schema()
        click.echo("✓ Database ready")
    except RuntimeError as e:
        logging.getLogger("eventdesk").error(f"init-db failed: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)


# =============================================================================
# BOOKINGS COMMANDS
# =============================================================================

@cli.group()
def bookings():
    """Manage event bookings"""
    pass


@bookings.command('list')
@click.option('--filter', 'mode', type=click.Choice(stats.FILTER_MODES), default=stats.MODE_ALL,
              show_default=True, help='Which bookings to show')
@click.pass_context
@log_call
def bookings_list(ctx, mode):
    """List bookings, earliest date first"""
    results = stats.filter_and_sort(_load_bookings(ctx), mode)

    if not results:
        click.echo("No bookings found.")
        return

    click.echo(f"\n{len(results)} bookings ({mode}):\n")
    click.echo(f"{'ID':<10} {'Date':<11} {'Time':<12} {'Client':<24} {'Type':<22} {'Guests':>6} {'Total':>10}  Flags")
    click.echo("-" * 110)

    for b in results:
        flags = []
        if not b.contacted:
            flags.append('NEW')
        if not b.deposit_paid:
            flags.append('DEPOSIT DUE')
        elif not b.balance_paid:
            flags.append('BALANCE DUE')
        click.echo(
            f"{b.id[:8]:<10} {(b.date_requested or 'TBD'):<11} "
            f"{format_time_window(b.time, b.end_time):<12} {b.full_name[:22]:<24} "
            f"{b.event_type[:20]:<22} {b.guests:>6} {format_money(b.total_amount):>10}  {' '.join(flags)}"
        )


@bookings.command('show')
@click.argument('booking_id')
@click.pass_context
@log_call
def bookings_show(ctx, booking_id):
    """Show full booking details"""
    b = _get_booking(ctx, booking_id)
    if not b:
        return

    click.echo(f"\n{'='*80}")
    click.echo(f"BOOKING {b.id}: {b.full_name or '(no name)'}")
    click.echo(f"{'='*80}")
    click.echo(f"Email:        {b.email or '(not set)'}")
    click.echo(f"Phone:        {b.phone or '(not set)'}")
    click.echo(f"Event Type:   {b.event_type}")
    click.echo(f"Date:         {b.date_requested or 'TBD'}")
    click.echo(f"Time:         {format_time_window(b.time, b.end_time)}")
    click.echo(f"Guests:       {b.guests}")
    click.echo(f"Bar:          {b.bar_type.value} ({'venue beer/wine' if b.beer_wine_offered else 'uncorking fee'})")
    if b.has_food:
        click.echo(f"Food:         {b.food_source.value if b.food_source else 'TBD'} / "
                   f"{b.food_service_type.value if b.food_service_type else 'TBD'}")
    else:
        click.echo("Food:         none")
    click.echo(f"Add-ons:      parking={'yes' if b.add_parking else 'no'}, "
               f"tasting={'yes' if b.has_tasting else 'no'}, tour={'yes' if b.has_tour else 'no'}")
    click.echo(f"Total:        {format_money(b.total_amount)}")
    click.echo(f"Deposit:      {format_money(b.deposit_amount)} ({'paid' if b.deposit_paid else 'outstanding'})")
    click.echo(f"Balance:      {'paid' if b.balance_paid else 'outstanding'}")
    click.echo(f"Contacted:    {'yes' if b.contacted else 'no'}")
    if b.pushed_to_calendar:
        click.echo(f"Calendar:     pushed {b.calendar_pushed_at} ({b.google_event_id})")

    if b.notes:
        click.echo(f"\nNotes:\n{b.notes}")
    click.echo()


@bookings.command('add')
@click.pass_context
@log_call
def bookings_add(ctx):
    """Add a new booking (interactive)"""
    rates = ctx.obj['rates']
    click.echo("\n=== ADD NEW BOOKING ===\n")

    record = new_draft(event_type=config.DEFAULT_EVENT_TYPE)
    record.first_name = click.prompt("First name", type=str)
    record.last_name = click.prompt("Last name", type=str)
    record.email = _prompt_email() or ''
    record.phone = click.prompt("Phone", default="", show_default=False)
    click.echo(f"  Suggestions: {', '.join(EVENT_TYPE_SUGGESTIONS)}")
    record.event_type = click.prompt("Event type", default=record.event_type)
    record.date_requested = _prompt_date("Date (YYYY-MM-DD, Enter to skip)")
    record.time = _prompt_time("Start time (HH:MM)", record.time)
    record.end_time = _prompt_time("End time (HH:MM)", record.end_time)
    record.apply_edits({'guests': click.prompt("Guests", default=str(record.guests))})
    _prompt_services(record)

    suggested_total = pricing.estimate_total(record, rates)
    suggested_deposit = pricing.estimate_deposit(suggested_total, rates.deposit_rate)
    click.echo(f"\nSuggested total: {format_money(suggested_total)}  (deposit {format_money(suggested_deposit)})")
    if click.confirm("Apply suggested pricing?", default=True):
        pricing.apply_estimate(record, rates)
    else:
        record.apply_edits({
            'total_amount': click.prompt("Total amount", default="0"),
            'deposit_amount': click.prompt("Deposit amount", default="0"),
        })

    record.contacted = click.confirm("Client already contacted?", default=False)
    record.notes = click.prompt("Notes", default="", show_default=False)

    try:
        _store(ctx).upsert(record)
    except RuntimeError as e:
        logging.getLogger("eventdesk").error(f"bookings add failed: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return
    click.echo(f"\n✓ Created booking {record.id}: {record.full_name}")


@bookings.command('edit')
@click.argument('booking_id')
@click.option('--first-name', help='Update first name')
@click.option('--last-name', help='Update last name')
@click.option('--email', help='Update email')
@click.option('--phone', help='Update phone')
@click.option('--event-type', help='Update event type')
@click.option('--date', 'date_requested', help='Update date (YYYY-MM-DD)')
@click.option('--start', 'start_time', help='Update start time (HH:MM)')
@click.option('--end', 'end_time', help='Update end time (HH:MM)')
@click.option('--guests', help='Update guest count')
@click.option('--total', help='Update total amount')
@click.option('--deposit', help='Update deposit amount')
@click.option('--bar', type=click.Choice(BAR_CHOICES, case_sensitive=False), help='Update bar type')
@click.option('--notes', help='Update notes')
@click.option('--contacted/--not-contacted', default=None, help='Mark client follow-up')
@click.option('--deposit-paid/--deposit-unpaid', default=None, help='Deposit payment status')
@click.option('--balance-paid/--balance-unpaid', default=None, help='Balance payment status')
@click.option('--apply-estimate', is_flag=True, help='Overwrite total and deposit with the suggested pricing')
@click.pass_context
@log_call
def bookings_edit(ctx, booking_id, first_name, last_name, email, phone, event_type, date_requested,
                  start_time, end_time, guests, total, deposit, bar, notes, contacted, deposit_paid,
                  balance_paid, apply_estimate):
    """Edit a booking (use options to set fields)"""
    logger = logging.getLogger("eventdesk")
    candidates = {
        'first_name': first_name, 'last_name': last_name, 'email': email, 'phone': phone,
        'event_type': event_type, 'date_requested': date_requested, 'time': start_time,
        'end_time': end_time, 'guests': guests, 'total_amount': total, 'deposit_amount': deposit,
        'bar_type': bar, 'notes': notes, 'contacted': contacted, 'deposit_paid': deposit_paid,
        'balance_paid': balance_paid,
    }
    updates = {k: v for k, v in candidates.items() if v is not None}

    if not updates and not apply_estimate:
        click.echo("No updates specified. See --help for the editable fields.", err=True)
        return

    if date_requested:
        try:
            date.fromisoformat(date_requested)
        except ValueError:
            click.echo("Invalid date — please use YYYY-MM-DD.", err=True)
            return
    for label, value in (('start', start_time), ('end', end_time)):
        if value and not _TIME_RE.match(value):
            click.echo(f"Invalid {label} time — please use 24-hour HH:MM.", err=True)
            return

    record = _get_booking(ctx, booking_id)
    if not record:
        return

    try:
        record.apply_edits(updates)
        if apply_estimate:
            pricing.apply_estimate(record, ctx.obj['rates'])
        _store(ctx).upsert(record)
    except ValueError as e:
        logger.warning(f"bookings edit rejected for {booking_id}: {e}")
        click.echo(f"Error: {e}", err=True)
        return
    except RuntimeError as e:
        logger.error(f"bookings edit failed for {booking_id}: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return

    click.echo(f"✓ Updated booking {booking_id}")


@bookings.command('delete')
@click.argument('booking_id')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_context
@log_call
def bookings_delete(ctx, booking_id, yes):
    """Permanently delete a booking"""
    if not yes and not click.confirm(f"Permanently delete booking {booking_id}? This cannot be undone", default=False):
        click.echo("Cancelled.")
        return

    try:
        deleted = _store(ctx).delete(booking_id)
    except RuntimeError as e:
        logging.getLogger("eventdesk").error(f"bookings delete failed for {booking_id}: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return

    if deleted:
        click.echo(f"✓ Deleted booking {booking_id}")
    else:
        logging.getLogger("eventdesk").warning(f"bookings delete | booking_id={booking_id} not found")
        click.echo(f"Booking {booking_id} not found", err=True)


# =============================================================================
# REPORTS
# =============================================================================

@cli.command('stats')
@click.pass_context
@log_call
def show_stats(ctx):
    """Dashboard summary"""
    s = stats.compute_stats(_load_bookings(ctx))
    click.echo(f"\nTotal events:        {s.total_events}")
    click.echo(f"Total revenue:       {format_money(s.total_revenue)}")
    click.echo(f"New requests:        {s.new_requests}")
    click.echo(f"Pending collections: {s.pending_deposits}")
    click.echo()


@cli.command('revenue')
@click.option('--year', type=int, help='Only count bookings in this year')
@click.pass_context
@log_call
def revenue(ctx, year):
    """Revenue by month"""
    records = _load_bookings(ctx)
    monthly = stats.monthly_revenue(records, year=year)
    if year is not None:
        records = [r for r in records if getattr(stats.parse_booking_date(r.date_requested), 'year', None) == year]
    peak = max(list(monthly.values()) + [1000])

    click.echo(f"\nRevenue by month{f' ({year})' if year else ''}:\n")
    for month, amount in monthly.items():
        bar = '█' * int(round(amount / peak * 40))
        click.echo(f"  {month}  {format_money(amount):>10}  {bar}")
    total = sum(monthly.values())
    click.echo(f"\n  Average booking: {format_money(stats.average_revenue(records))}")
    click.echo(f"  Total:           {format_money(total)}")
    click.echo()


@cli.command('estimate')
@click.argument('booking_id')
@click.option('--apply', 'apply_it', is_flag=True, help='Save the suggestion to the booking')
@click.pass_context
@log_call
def estimate(ctx, booking_id, apply_it):
    """Suggested pricing for a booking"""
    rates = ctx.obj['rates']
    record = _get_booking(ctx, booking_id)
    if not record:
        return

    total = pricing.estimate_total(record, rates)
    deposit = pricing.estimate_deposit(total, rates.deposit_rate)
    click.echo(f"Suggested total:   {format_money(total)}  (current {format_money(record.total_amount)})")
    click.echo(f"Suggested deposit: {format_money(deposit)}  (current {format_money(record.deposit_amount)})")

    if apply_it:
        pricing.apply_estimate(record, rates)
        try:
            _store(ctx).upsert(record)
        except RuntimeError as e:
            logging.getLogger("eventdesk").error(f"estimate --apply failed for {booking_id}: {e}", exc_info=True)
            click.echo(f"Error: {e}", err=True)
            return
        click.echo("✓ Suggestion applied")


# =============================================================================
# EVENT SHEET & AI BRIEFING
# =============================================================================

@cli.command('sheet')
@click.argument('booking_id')
@click.option('--brief', 'with_brief', is_flag=True, help='Include an AI front-of-house briefing')
@click.option('--model', type=click.Choice(AI_MODEL_CHOICES), default=config.DEFAULT_AI_MODEL,
              show_default=True, help='AI model to use for the briefing')
@click.option('--output', type=click.Path(dir_okay=False, writable=True), help='Write the sheet to a file')
@click.pass_context
@log_call
def sheet(ctx, booking_id, with_brief, model, output):
    """Printable event order for a booking"""
    record = _get_booking(ctx, booking_id)
    if not record:
        return

    briefing_text = None
    if with_brief:
        from eventdesk.engine.briefing import generate_foh_briefing
        briefing_text = generate_foh_briefing(record, model=model)

    text = render_event_sheet(record, briefing=briefing_text, rates=ctx.obj['rates'])
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)
        click.echo(f"✓ Event sheet saved to: {output}")
    else:
        click.echo(text)


@cli.command('brief')
@click.argument('booking_id')
@click.option('--model', type=click.Choice(AI_MODEL_CHOICES), default=config.DEFAULT_AI_MODEL,
              show_default=True, help='AI model to use')
@click.pass_context
@log_call
def brief(ctx, booking_id, model):
    """AI front-of-house briefing for a booking"""
    from eventdesk.engine.briefing import generate_foh_briefing

    record = _get_booking(ctx, booking_id)
    if not record:
        return

    click.echo(f"\nGenerating FOH briefing [{model}]...\n")
    click.echo(generate_foh_briefing(record, model=model))
    click.echo()


# =============================================================================
# CALENDAR
# =============================================================================

@cli.command('push')
@click.argument('booking_id')
@click.pass_context
@log_call
def push(ctx, booking_id):
    """Push a booking to the calendar webhook"""
    from eventdesk.engine.calendar_push import push_event_to_calendar

    record = _get_booking(ctx, booking_id)
    if not record:
        return

    result = push_event_to_calendar(record, config.CALENDAR_WEBHOOK_URL, store=_store(ctx),
                                    location=config.VENUE_LOCATION)
    if result.success:
        click.echo(f"✓ Pushed to calendar ({result.google_event_id})")
    else:
        logging.getLogger("eventdesk").warning(f"push failed for {booking_id}: {result.error}")
        click.echo(f"Calendar push failed: {result.error}", err=True)


# =============================================================================
# PUBLIC INQUIRY
# =============================================================================

@cli.command('inquire')
@click.pass_context
@log_call
def inquire(ctx):
    """Public event inquiry form (client-facing subset of fields)"""
    logger = logging.getLogger("eventdesk")
    click.echo("\n=== PRIVATE EVENT INQUIRY ===\n")

    record = new_draft(event_type=config.DEFAULT_EVENT_TYPE)
    record.first_name = click.prompt("First name", type=str)
    record.last_name = click.prompt("Last name", type=str)
    record.email = _prompt_email(required=True)
    record.phone = click.prompt("Phone", type=str)
    click.echo(f"  Suggestions: {', '.join(EVENT_TYPE_SUGGESTIONS)}")
    record.event_type = click.prompt("Event type", default=record.event_type)
    record.date_requested = _prompt_date("Preferred date (YYYY-MM-DD)")
    record.time = _prompt_time("Start time (HH:MM)", record.time)
    record.end_time = _prompt_time("End time (HH:MM)", record.end_time)
    record.apply_edits({'guests': click.prompt("Expected guests", default=str(record.guests))})
    _prompt_services(record, include_bar=False)
    record.notes = click.prompt("Anything else we should know?", default="", show_default=False)

    # Staff-only state is never taken from the public form
    record.contacted = False
    record.deposit_paid = False
    record.balance_paid = False

    try:
        validate_contact(record)
        _store(ctx).insert(record)
    except ValueError as e:
        logger.warning(f"inquiry rejected: {e}")
        click.echo(f"Error: {e}", err=True)
        return
    except RuntimeError as e:
        logger.error(f"inquiry submission failed: {e}", exc_info=True)
        click.echo("Submission failed. Please check your connection and try again.", err=True)
        return

    click.echo("\n✓ Thank you! Your inquiry has been received. We'll be in touch shortly.")


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
