"""
Calendar Push
Sends a booking to a calendar webhook (e.g. a Zapier hook that creates the
Google Calendar entry) and records the sync metadata on success.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from eventdesk.engine.timefmt import combine_date_time_iso
from eventdesk.models import BookingRecord
from eventdesk.bus.events import bus, EVENT_CALENDAR_PUSHED

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Distillery Tasting Room & Production Floor"


@dataclass
class CalendarPushResult:
    success: bool
    google_event_id: Optional[str] = None
    error: Optional[str] = None


def build_payload(record: BookingRecord, location: str = DEFAULT_LOCATION) -> Dict[str, Any]:
    """JSON body for the webhook."""
    return {
        "title": f"{record.event_type} - {record.full_name}",
        "description": (
            "Distillery Event Briefing\n"
            f"Client: {record.full_name}\n"
            f"Guests: {record.guests}\n"
            f"Notes: {record.notes or 'No specific directives.'}"
        ),
        "start": combine_date_time_iso(record.date_requested, record.time),
        "end": combine_date_time_iso(record.date_requested, record.end_time),
        "location": location,
        "eventId": record.id,
        "clientEmail": record.email,
        "clientPhone": record.phone,
    }


def push_event_to_calendar(
    record: BookingRecord,
    webhook_url: Optional[str],
    store=None,
    location: str = DEFAULT_LOCATION,
    timeout: float = 15,
) -> CalendarPushResult:
    """
    Create the external calendar entry for a booking.

    On success the record gains pushed_to_calendar / calendar_pushed_at /
    google_event_id and, when a store is given, is saved back. A failed save
    is logged only; the push itself already happened.
    """
    if not webhook_url:
        return CalendarPushResult(success=False, error="Calendar webhook URL not configured.")

    try:
        response = requests.post(webhook_url, json=build_payload(record, location), timeout=timeout)
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError:
            body = {}
    except requests.exceptions.RequestException as e:
        logger.error(f"Calendar push failed for booking {record.id}: {e}")
        return CalendarPushResult(success=False, error=str(e))

    if not isinstance(body, dict):
        body = {}
    google_event_id = str(body.get('id') or body.get('google_event_id') or 'pushed')

    record.pushed_to_calendar = True
    record.calendar_pushed_at = datetime.now(timezone.utc)
    record.google_event_id = google_event_id
    logger.info(f"Pushed booking {record.id} to calendar as {google_event_id}")

    if store is not None:
        try:
            store.upsert(record)
        except Exception as e:
            logger.error(f"Calendar status kept locally but store update failed for {record.id}: {e}")

    bus.emit(EVENT_CALENDAR_PUSHED, {'booking_id': record.id, 'google_event_id': google_event_id})
    return CalendarPushResult(success=True, google_event_id=google_event_id)
