"""
FOH Briefing
Front of House briefing text for a booking, written by an AI backend.
Purely additive display content: failures come back as an error string.
"""

import logging

from eventdesk.engine import ai_client
from eventdesk.models import BookingRecord
from eventdesk.bus.events import bus, EVENT_BRIEFING_READY

logger = logging.getLogger(__name__)

BRIEFING_UNAVAILABLE = "Unable to generate briefing."
BRIEFING_ERROR = "Error generating AI briefing."


def build_briefing_prompt(record: BookingRecord) -> str:
    """Event data for the briefing prompt; catering details only when food is served."""
    if record.has_food:
        source = record.food_source.value if record.food_source else 'TBD'
        style = record.food_service_type.value if record.food_service_type else 'TBD'
        food_details = f"FOOD SERVICE: {source} - {style} style."
    else:
        food_details = "NO FOOD SERVICE."

    beverage = "venue beer/wine service" if record.beer_wine_offered else "client-supplied beer/wine (uncorking fee)"

    return (
        "Generate a concise Front of House (FOH) intelligence briefing for:\n"
        f"Event: {record.event_type}\n"
        f"Guest: {record.full_name}\n"
        f"Date: {record.date_requested or 'TBD'} {record.time}-{record.end_time}\n"
        f"Count: {record.guests}\n"
        f"Bar Selection: {record.bar_type.value} ({beverage})\n"
        f"Catering: {food_details}\n"
        f"Add-ons: tasting={'yes' if record.has_tasting else 'no'}, "
        f"tour={'yes' if record.has_tour else 'no'}, parking={'yes' if record.add_parking else 'no'}\n"
        f"Specific Client Notes: {record.notes or 'None'}\n"
    )


def generate_foh_briefing(record: BookingRecord, model: str = 'deepseek-chat') -> str:
    """
    Briefing text for the booking. Never raises: returns BRIEFING_UNAVAILABLE
    when the backend answers with nothing and BRIEFING_ERROR when it fails.
    """
    try:
        text = ai_client.request_briefing(build_briefing_prompt(record), model)
    except Exception as e:
        logger.error(f"Briefing generation failed for booking {record.id}: {e}")
        return BRIEFING_ERROR

    text = (text or '').strip()
    if not text:
        logger.warning(f"Briefing for booking {record.id} came back empty")
        return BRIEFING_UNAVAILABLE

    logger.info(f"Generated FOH briefing for booking {record.id} [{model}]")
    bus.emit(EVENT_BRIEFING_READY, {'booking_id': record.id, 'model': model})
    return text
