"""
Per-instrument daily close prices for mark-to-market.

One PriceResolver belongs to one report computation. It fetches each instrument's
series at most once and never shares its cache with another computation.
"""
import logging
from typing import Callable, Dict, Iterable, Mapping, Optional

from .calendar import DateLike, DayRange, day_key_of
from .fields import safe_float
from .timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

# (instrument, start, end) -> {day_key: close}
PriceSource = Callable[[str, DateLike, DateLike], Mapping[str, float]]


def daily_closes_from_samples(samples: Iterable) -> Dict[str, float]:
    """
    Collapse [timestamp, price] samples into one close per UTC day.

    Samples are applied in timestamp order, so the last sample of each day wins
    even if the upstream list is not sorted. Malformed samples are skipped.
    """
    stamped = []
    for sample in samples or []:
        try:
            raw_ts, raw_price = sample[0], sample[1]
        except (TypeError, IndexError, KeyError):
            continue
        ts = normalize_timestamp(raw_ts)
        price = safe_float(raw_price, default=None)
        if ts is None or price is None:
            continue
        stamped.append((ts, price))

    closes: Dict[str, float] = {}
    for ts, price in sorted(stamped, key=lambda item: item[0]):
        day = day_key_of(ts)
        if day is not None:
            closes[day] = price
    return closes


class PriceResolver:
    """
    Memoised close-price lookups for one engine run.

    Args:
        source: callable returning {day_key: close} for an instrument and range;
            None means no price data at all (unrealized PnL stays zero)
        start, end: the report range, passed through to the source
    """

    def __init__(
        self,
        source: Optional[PriceSource] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ):
        self._source = source
        self._start = start
        self._end = end
        self._series: Dict[str, Dict[str, float]] = {}
        self.fetch_count = 0

    @classmethod
    def from_series(cls, series: Mapping[str, Mapping[str, float]]) -> "PriceResolver":
        """Build a resolver over series that were already fetched."""
        resolver = cls()
        for instrument, closes in series.items():
            resolver._series[instrument] = _clean_series(closes)
        return resolver

    def bind_range(self, day_range: DayRange) -> None:
        if self._start is None:
            self._start = day_range.start
        if self._end is None:
            self._end = day_range.end

    def close_price_series(self, instrument: str) -> Dict[str, float]:
        if instrument in self._series:
            return self._series[instrument]

        closes: Dict[str, float] = {}
        if self._source is not None:
            self.fetch_count += 1
            try:
                closes = _clean_series(self._source(instrument, self._start, self._end))
            except Exception as e:
                logger.warning(f"Close price fetch failed for {instrument}: {e}")
                closes = {}
        self._series[instrument] = closes
        return closes

    def close_price(self, instrument: str, day_key: str) -> Optional[float]:
        return self.close_price_series(instrument).get(day_key)


def _clean_series(closes: Optional[Mapping[str, float]]) -> Dict[str, float]:
    cleaned: Dict[str, float] = {}
    for day, price in (closes or {}).items():
        value = safe_float(price, default=None)
        if value is not None:
            cleaned[str(day)] = value
    return cleaned
