"""
UTC calendar-day bucketing.

Day keys are ISO dates ("2025-01-02"). Every conversion from an instant to a day key
goes through day_key_of so the whole engine shares one timezone convention.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_DAY = timedelta(days=1)

DateLike = Union[date, str]


class InvalidDateRange(ValueError):
    """
    日期区间不合法: 日期无法解析, 或 end 早于 start
    """
    def __init__(self, start: object, end: object, reason: str = "end is before start") -> None:
        self.start = start
        self.end = end
        self.message = f"Invalid date range {start!r}..{end!r}: {reason}"
        super().__init__(self.message)


def parse_day(value: DateLike) -> date:
    """Accept a date or a YYYY-MM-DD string; datetimes are truncated to their date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def day_key_of(epoch_ms: Optional[int]) -> Optional[str]:
    """
    Map epoch milliseconds to the UTC calendar date they fall on.

    Returns None instead of raising for missing or out-of-range instants.
    """
    if epoch_ms is None:
        return None
    try:
        return (EPOCH + timedelta(milliseconds=epoch_ms)).date().isoformat()
    except (OverflowError, TypeError, ValueError):
        return None


class DayRange:
    """
    Inclusive, restartable sequence of day keys from start to end.

    Iterating twice yields the same keys; nothing is materialised up front.
    """

    def __init__(self, start: DateLike, end: DateLike):
        try:
            self.start = parse_day(start)
            self.end = parse_day(end)
        except (TypeError, ValueError) as e:
            raise InvalidDateRange(start, end, reason=str(e)) from e
        if self.end < self.start:
            raise InvalidDateRange(start, end)

    def __iter__(self) -> Iterator[str]:
        current = self.start
        while current <= self.end:
            yield current.isoformat()
            current += ONE_DAY

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day_key: object) -> bool:
        if not isinstance(day_key, str):
            return False
        try:
            day = date.fromisoformat(day_key)
        except ValueError:
            return False
        return self.start <= day <= self.end

    def __repr__(self) -> str:
        return f"DayRange({self.start.isoformat()}..{self.end.isoformat()})"


def day_keys_between(start: DateLike, end: DateLike) -> DayRange:
    return DayRange(start, end)
