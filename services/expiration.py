"""Duration parsing for upload link expiry."""

import math
import re
from datetime import date, datetime, timedelta

from services.errors import InvalidExpiresInFormat

DEFAULT_EXPIRES_IN = "7d"

# ASCII digits only; matched with fullmatch so a trailing newline is rejected
_DURATION_PATTERN = re.compile(r"([0-9]+)([smhdw])")

# Upper bound on a link lifetime (10 years)
MAX_EXPIRES_IN_SECONDS = 10 * 365 * 86400

_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_expires_in(duration: str | None = None) -> int:
    """
    Convert a duration like "7d", "24h" or "30m" into seconds.

    Args:
        duration: Duration string; None means the 7-day default

    Returns:
        Number of seconds (always > 0)

    Raises:
        InvalidExpiresInFormat: If duration is not ``<digits><s|m|h|d|w>``, is zero
            or exceeds MAX_EXPIRES_IN_SECONDS
    """
    if duration is None:
        duration = DEFAULT_EXPIRES_IN
    if not isinstance(duration, str):
        raise InvalidExpiresInFormat(duration)

    match = _DURATION_PATTERN.fullmatch(duration)
    if not match:
        raise InvalidExpiresInFormat(duration)

    value, unit = match.groups()
    seconds = int(value) * _UNIT_SECONDS[unit]
    if seconds <= 0:
        # A zero window would give exp == iat
        raise InvalidExpiresInFormat(duration)
    if seconds > MAX_EXPIRES_IN_SECONDS:
        raise InvalidExpiresInFormat(
            duration,
            message=f"expires_in must not exceed {MAX_EXPIRES_IN_SECONDS // 86400}d",
        )
    return seconds


def due_date_to_expires_in(
    due_date: date | datetime | str,
    today: date | None = None,
) -> str:
    """
    Turn a document due date into an expires_in string for link issuance.

    Days are counted midnight to midnight and rounded up, with a floor of
    one day so a due date of today (or in the past) still yields a usable link.

    Args:
        due_date: Target date (date, datetime or ISO-8601 string)
        today: Reference date, defaults to the local current date

    Returns:
        Duration string such as "14d"
    """
    if isinstance(due_date, str):
        due_date = datetime.fromisoformat(due_date)
    if isinstance(due_date, datetime):
        due_date = due_date.date()
    if today is None:
        today = date.today()

    delta = datetime.combine(due_date, datetime.min.time()) - datetime.combine(
        today, datetime.min.time()
    )
    days = max(1, math.ceil(delta / timedelta(days=1)))
    return f"{days}d"
