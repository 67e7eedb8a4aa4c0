"""
Day partitioning of trade and funding records.
"""
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence

from .calendar import day_key_of
from .fields import funding_timestamp, trade_timestamp
from .timestamps import normalize_timestamp

TimestampGetter = Callable[[Any], Any]


def record_day_key(record: Any, timestamp_of: TimestampGetter) -> Optional[str]:
    """UTC day key of a record, or None when its timestamp cannot be resolved."""
    return day_key_of(normalize_timestamp(timestamp_of(record)))


def records_for_day(records: Sequence[Any], day_key: str, timestamp_of: TimestampGetter) -> List[Any]:
    """Pure filter: the records whose normalised timestamp falls on day_key."""
    return [r for r in records if record_day_key(r, timestamp_of) == day_key]


class RecordClassifier:
    """
    Resolves every record's day key once and serves per-day subsets.

    Records are never mutated. Records without a resolvable day key belong to no
    day and are only counted in `unresolved`.
    """

    def __init__(self, records: Optional[Sequence[Any]], timestamp_of: TimestampGetter):
        self.records = list(records or [])
        self._by_day: Dict[str, List[Any]] = defaultdict(list)
        self.unresolved = 0
        for record in self.records:
            day = record_day_key(record, timestamp_of)
            if day is None:
                self.unresolved += 1
                continue
            self._by_day[day].append(record)

    @classmethod
    def for_trades(cls, trades: Optional[Sequence[Any]]) -> "RecordClassifier":
        return cls(trades, trade_timestamp)

    @classmethod
    def for_funding(cls, funding: Optional[Sequence[Any]]) -> "RecordClassifier":
        return cls(funding, funding_timestamp)

    def for_day(self, day_key: str) -> List[Any]:
        return list(self._by_day.get(day_key, ()))

    def count_in(self, day_keys) -> int:
        return sum(len(self._by_day.get(day, ())) for day in day_keys)

    def __len__(self) -> int:
        return len(self.records)
