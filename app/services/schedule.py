"""
Cron schedule helpers for recurring games.

Accepted expressions:
- standard 5-field cron ("0 18 * * mon")
- 6 or 7 fields with seconds first ("0 0 18 * * mon [year]"), the form many
  schedulers use; seconds are moved to croniter's trailing position.

All times are UTC.
"""

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, timezone

from croniter import CroniterBadDateError, croniter


def normalize_cron(expression: str) -> str:
    """Return the croniter form of a cron expression."""
    fields = expression.split()
    if len(fields) == 6:
        seconds, rest = fields[0], fields[1:]
        fields = rest + [seconds]
    elif len(fields) == 7:
        seconds, rest, year = fields[0], fields[1:6], fields[6]
        fields = rest + [seconds, year]
    return " ".join(fields)


def validate_cron(expression: str) -> str:
    """Raise ValueError unless the expression is a usable schedule."""
    fields = expression.split()
    if len(fields) not in (5, 6, 7):
        raise ValueError("cron schedule must have 5, 6 or 7 fields")
    if not croniter.is_valid(normalize_cron(expression)):
        raise ValueError(f"invalid cron schedule: {expression!r}")
    return expression


def iter_occurrences(
    expression: str,
    first_date: date,
    last_date: date,
) -> Iterator[datetime]:
    """Yield UTC occurrence times whose date falls in [first_date, last_date]."""
    start = datetime.combine(first_date, time.min, tzinfo=timezone.utc) - timedelta(seconds=1)
    schedule = croniter(normalize_cron(expression), start)

    while True:
        try:
            occurrence = schedule.get_next(datetime)
        except CroniterBadDateError:
            # Schedule has no further matching dates
            return
        if occurrence.tzinfo is None:
            occurrence = occurrence.replace(tzinfo=timezone.utc)
        if occurrence.date() > last_date:
            return
        if occurrence.date() >= first_date:
            yield occurrence
