from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from .models import TodoStatus
from .utils import as_utc


@dataclass(frozen=True)
class TodoStats:
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
    completion_rate: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def _percent(part: int, whole: int) -> int:
    """Percentage rounded half up; 0 for an empty whole."""
    if whole == 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


# PUBLIC_INTERFACE
def aggregate(records: Iterable[Mapping[str, Any]], now: datetime) -> TodoStats:
    """
    Scan every record once and summarize the collection.

    A record is overdue when its deadline is before `now` and it is not
    completed.
    """
    now = as_utc(now)
    counts = {status: 0 for status in TodoStatus}
    total = 0
    overdue = 0

    for record in records:
        total += 1
        status = TodoStatus(record["status"])
        counts[status] += 1
        deadline = record.get("deadline")
        if deadline is not None and as_utc(deadline) < now and status is not TodoStatus.COMPLETED:
            overdue += 1

    completed = counts[TodoStatus.COMPLETED]
    return TodoStats(
        total=total,
        pending=counts[TodoStatus.PENDING],
        in_progress=counts[TodoStatus.IN_PROGRESS],
        completed=completed,
        overdue=overdue,
        completion_rate=_percent(completed, total),
    )
