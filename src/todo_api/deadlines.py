from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from .models import DeadlineStatus
from .utils import as_utc

_DAY = timedelta(days=1)

# Deadlines at most this many days away count as due soon.
DUE_SOON_DAYS = 3


# PUBLIC_INTERFACE
def classify(deadline: Optional[datetime], now: datetime) -> DeadlineStatus:
    """
    Derive the urgency of a deadline relative to `now`.

    Any deadline already behind `now` is overdue. Otherwise the remaining time is
    rounded up to whole days: 0 is due today, 1..3 is due soon, and anything
    further out has no urgency.

    Because every past deadline is overdue and the rounding is upwards, due today
    only ever matches a deadline equal to `now`; a deadline later today rounds up
    to 1 and is due soon.
    """
    if deadline is None:
        return DeadlineStatus.NONE

    remaining = as_utc(deadline) - as_utc(now)
    if remaining < timedelta(0):
        return DeadlineStatus.OVERDUE

    days_until = math.ceil(remaining / _DAY)
    if days_until == 0:
        return DeadlineStatus.DUE_TODAY
    if days_until <= DUE_SOON_DAYS:
        return DeadlineStatus.DUE_SOON
    return DeadlineStatus.NONE


# PUBLIC_INTERFACE
def annotate(record: Mapping[str, Any], now: datetime) -> Dict[str, Any]:
    """Return a copy of `record` with its deadline_status attached."""
    out = dict(record)
    out["deadline_status"] = classify(record.get("deadline"), now)
    return out
