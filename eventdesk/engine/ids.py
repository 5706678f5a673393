"""
Identifier Generator
Opaque string ids for new bookings, created client-side with no central coordination.
"""

import itertools
import logging
import random
import time
import uuid
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_FALLBACK_PREFIX = "id-"
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Mixed into the fallback so ids minted in the same millisecond still differ
_counter = itertools.count()
_rng = random.Random()


def to_base36(number: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if number < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _fallback_id() -> str:
    fragment = (_rng.getrandbits(64) << 20) | (next(_counter) & 0xFFFFF)
    timestamp = int(time.time() * 1000)
    return f"{_FALLBACK_PREFIX}{to_base36(fragment)}-{to_base36(timestamp)}"


def generate_safe_id(uuid_source: Optional[Callable[[], object]] = uuid.uuid4) -> str:
    """
    Return a new unique id.

    Uses `uuid_source` (uuid4 by default) when it works; if it is missing,
    raises, or yields nothing, builds 'id-<base36 random>-<base36 ms timestamp>'.
    Never raises and never returns an empty string.
    """
    if uuid_source is not None:
        try:
            value = str(uuid_source() or "")
            if value:
                return value
        except Exception as e:
            logger.warning(f"UUID source failed, using fallback id: {e}")
    return _fallback_id()
