"""Timezone helpers – UTC clock for audit stamps.

Audit columns are naive ``DateTime`` columns holding UTC, so the auditing
interceptor stamps with :pyfunc:`utc_now_naive`.
"""

from datetime import datetime
from datetime import timedelta
from datetime import timezone

# Smallest step a ``DateTime`` column round-trips on every backend we support.
CLOCK_RESOLUTION = timedelta(microseconds=1)


def utc_now_naive() -> datetime:  # noqa: D401 – simple utility
    """Return *naive* current time in UTC for database compatibility."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def advance_past(now: datetime, previous: datetime | None) -> datetime:
    """Return *now*, nudged forward when it does not move past *previous*.

    Clocks with coarse resolution can hand out the same reading twice in a
    row; modification stamps must still move strictly forward.
    """

    if previous is not None and now <= previous:
        return previous + CLOCK_RESOLUTION
    return now


__all__ = ["CLOCK_RESOLUTION", "advance_past", "utc_now_naive"]
