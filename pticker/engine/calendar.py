"""Trading-window checks for the hours-limited update mode."""
from __future__ import annotations

import datetime
from typing import Final

import whenever

# Pre-market opens at 04:00 and post-market closes at 20:00 (US/Eastern),
# so this window covers every session a quote can be "live" in.
SESSION_OPEN: Final = datetime.time(4, 0)
SESSION_CLOSE: Final = datetime.time(20, 0)


def marketHoursOpen(now: whenever.ZonedDateTime) -> bool:
    """True Monday-Friday between SESSION_OPEN (inclusive) and SESSION_CLOSE (exclusive).

    Holidays are not excluded; the provider just returns unchanged quotes then.
    """
    local = now.py_datetime()
    if local.weekday() >= 5:
        return False

    return SESSION_OPEN <= local.time() < SESSION_CLOSE
