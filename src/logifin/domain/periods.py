"""Period resolution and calendar bucketing.

Two helpers drive every range query issued by the dashboard:

* :func:`resolve` turns a named :class:`Period` into a concrete
  ``[start, now]`` :class:`DateRange`.
* :func:`bucketize` splits a trailing window of N months or N days into
  contiguous :class:`Bucket` objects, oldest first, the last one ending at
  ``now``.

``now`` is always an argument. Ranges re-resolved a moment later end at the
new ``now``, so nothing here holds on to a stale clock value. Naive and
timezone-aware datetimes are both accepted; tzinfo is carried through.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, List, Optional

from dateutil.relativedelta import relativedelta

from .value_objects import Bucket, BucketUnit, DateRange, Period

__all__ = [
    "RESOLUTION",
    "MONTH_LABELS_FR",
    "midnight",
    "end_of_day",
    "closed_day",
    "resolve",
    "parse_period",
    "bucketize",
    "month_label",
    "day_label",
]

# Gap between the end of one bucket and the start of the next.
RESOLUTION = timedelta(microseconds=1)

MONTH_LABELS_FR = (
    "janv.",
    "févr.",
    "mars",
    "avr.",
    "mai",
    "juin",
    "juil.",
    "août",
    "sept.",
    "oct.",
    "nov.",
    "déc.",
)

LabelFormat = Callable[[datetime], str]


def midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return midnight(moment) + timedelta(days=1) - RESOLUTION


def closed_day(moment: datetime) -> DateRange:
    """Full calendar day containing ``moment`` (for historical days)."""

    return DateRange(start=midnight(moment), end=end_of_day(moment))


def resolve(period: Period | str, now: datetime) -> DateRange:
    """Return the ``[start, now]`` range of ``period`` anchored at ``now``."""

    period = parse_period(period)
    today = midnight(now)

    if period is Period.DAY:
        start = today
    elif period is Period.WEEK:
        # weekday() is 0 for Monday, 6 for Sunday
        start = today - timedelta(days=now.weekday())
    elif period is Period.MONTH:
        start = today.replace(day=1)
    elif period is Period.QUARTER:
        first_month = 3 * ((now.month - 1) // 3) + 1
        start = today.replace(month=first_month, day=1)
    elif period is Period.YEAR:
        start = today.replace(month=1, day=1)
    else:  # pragma: no cover - enum is exhaustive
        raise ValueError(f"Unknown period: {period!r}")

    return DateRange(start=start, end=now)


def parse_period(token: Period | str) -> Period:
    if isinstance(token, Period):
        return token
    try:
        return Period((token or "").strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in Period)
        raise ValueError(f"Unknown period: {token!r} (expected one of {choices})") from None


def month_label(moment: datetime) -> str:
    return MONTH_LABELS_FR[moment.month - 1]


def day_label(moment: datetime) -> str:
    return moment.strftime("%d/%m")


def bucketize(
    count: int,
    unit: BucketUnit | str,
    now: datetime,
    label_format: Optional[LabelFormat] = None,
) -> List[Bucket]:
    """Build ``count`` contiguous buckets ending with the one containing ``now``.

    Args:
        count: Number of buckets (>= 1).
        unit: ``BucketUnit.MONTH`` or ``BucketUnit.DAY``.
        now: Anchor instant; the last bucket ends exactly here.
        label_format: Callable receiving each bucket start; defaults to French
            short month names for months and ``dd/mm`` for days.

    Returns:
        Buckets ordered oldest first. Bucket ``i`` ends one microsecond before
        bucket ``i + 1`` starts, so the union is ``[first.start, now]``.
    """
    if count < 1:
        raise ValueError("count must be at least 1")
    unit = BucketUnit(unit)

    if unit is BucketUnit.MONTH:
        step = relativedelta(months=1)
        current_start = midnight(now).replace(day=1)
        formatter = label_format or month_label
    else:
        step = relativedelta(days=1)
        current_start = midnight(now)
        formatter = label_format or day_label

    starts = [current_start - step * offset for offset in range(count - 1, -1, -1)]

    buckets: List[Bucket] = []
    for index, start in enumerate(starts):
        if index + 1 < len(starts):
            end = starts[index + 1] - RESOLUTION
        else:
            end = now
        buckets.append(Bucket(label=formatter(start), range=DateRange(start=start, end=end)))
    return buckets
