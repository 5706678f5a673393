"""
EventDesk Configuration
Loads settings from environment variables with sensible defaults.

Nothing here decides whether a backend is "configured": the CLI reads
DATABASE_URL once and hands it to the record store it builds.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from eventdesk.engine.pricing import PricingRates

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read an environment variable, treating blanks and the literal string
    'undefined' (left behind by misconfigured deploy tooling) as unset.
    """
    value = os.getenv(key)
    if value is None:
        return default
    value = value.strip()
    if not value or value == 'undefined':
        return default
    return value


def _int_env(key: str, default: int) -> int:
    raw = get_env(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        _logger.warning(f"{key}={raw!r} is not an integer — using default {default}")
        return default


def _float_env(key: str, default: float) -> float:
    raw = get_env(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        _logger.warning(f"{key}={raw!r} is not a number — using default {default}")
        return default


class Config:
    """Application configuration."""

    # Database (optional); without it the CLI runs against an in-memory store
    DATABASE_URL = get_env('DATABASE_URL', '')
    if not DATABASE_URL:
        _logger.info("DATABASE_URL is not set — bookings will be kept in local mode only.")

    # Booking defaults
    DEFAULT_EVENT_TYPE = get_env('DEFAULT_EVENT_TYPE', 'Tasting Room Takeover')
    VENUE_LOCATION = get_env('VENUE_LOCATION', 'Distillery Tasting Room & Production Floor')

    # Pricing (whole currency units)
    BASE_VENUE_FEE = _int_env('BASE_VENUE_FEE', 1000)
    PER_GUEST_RATE = _float_env('PER_GUEST_RATE', 25)
    OPEN_BAR_RATE = _float_env('OPEN_BAR_RATE', 35)
    CATERING_RATE = _float_env('CATERING_RATE', 45)
    PARKING_FEE = _int_env('PARKING_FEE', 500)
    TASTING_RATE = _float_env('TASTING_RATE', 20)
    TOUR_RATE = _float_env('TOUR_RATE', 15)
    DEPOSIT_RATE = _float_env('DEPOSIT_RATE', 0.25)
    UNCORKING_FEE = _int_env('UNCORKING_FEE', 250)

    # AI Configuration
    # DeepSeek (routine tasks: briefings)
    DEEPSEEK_API_KEY = get_env('DEEPSEEK_API_KEY', '')
    DEEPSEEK_BASE_URL = get_env('DEEPSEEK_BASE_URL', 'https://api.deepseek.com')
    DEFAULT_AI_MODEL = get_env('DEFAULT_AI_MODEL', 'deepseek-chat')
    # Claude
    ANTHROPIC_API_KEY = get_env('ANTHROPIC_API_KEY', '')
    ANTHROPIC_MODEL = get_env('ANTHROPIC_MODEL', 'claude-3-5-sonnet-20241022')

    # Calendar push (webhook that creates the calendar entry, e.g. Zapier)
    CALENDAR_WEBHOOK_URL = get_env('CALENDAR_WEBHOOK_URL', '')

    def pricing_rates(self) -> PricingRates:
        """Pricing constants as configured."""
        return PricingRates(
            base_venue_fee=self.BASE_VENUE_FEE,
            per_guest=self.PER_GUEST_RATE,
            open_bar_per_guest=self.OPEN_BAR_RATE,
            catering_per_guest=self.CATERING_RATE,
            parking_fee=self.PARKING_FEE,
            tasting_per_guest=self.TASTING_RATE,
            tour_per_guest=self.TOUR_RATE,
            deposit_rate=self.DEPOSIT_RATE,
            uncorking_fee=self.UNCORKING_FEE,
        )


# Singleton instance
config = Config()
