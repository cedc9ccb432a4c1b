from __future__ import annotations

import math
import time
from datetime import date, datetime, time as dt_time, timedelta, timezone
from typing import Sequence

# Stand-in for the U.S. regular-session close, in the machine's local time.
MARKET_CLOSE_LOCAL = dt_time(16, 0)
_SECONDS_PER_DAY = 86400
_FRIDAY = 4


def target_anchor_ts(target: date) -> float:
    return datetime.combine(target, MARKET_CLOSE_LOCAL).timestamp()


def closest_expiration(available: Sequence[int], target: date) -> int:
    """
    Pick the listed expiration nearest to `target` (anchored at 16:00 local).

    Ties keep the earliest-encountered timestamp.
    """
    if not available:
        raise ValueError("closest_expiration requires at least one available expiration")
    anchor = target_anchor_ts(target)
    best = available[0]
    for ts in available:
        if abs(ts - anchor) < abs(best - anchor):
            best = ts
    return int(best)


def days_to_expiry(expiration_ts: float, *, now: float | None = None) -> int:
    now_ts = time.time() if now is None else float(now)
    return max(1, math.ceil((float(expiration_ts) - now_ts) / _SECONDS_PER_DAY))


def upcoming_fridays(count: int = 12, *, today: date | None = None) -> list[date]:
    today = today or date.today()
    ahead = (_FRIDAY - today.weekday() + 7) % 7 or 7
    first = today + timedelta(days=ahead)
    return [first + timedelta(weeks=i) for i in range(max(0, int(count)))]


# Yahoo lists expirations at 00:00 UTC of the expiry day.
def expiration_date(expiration_ts: int) -> date:
    return datetime.fromtimestamp(int(expiration_ts), tz=timezone.utc).date()


def expiration_label(expiration_ts: int) -> str:
    return expiration_date(expiration_ts).strftime("%a, %b %d, %Y")
