"""
PnL report computation over already-fetched inputs.

compute_report is a pure function of its arguments: no clock, no randomness, no network.
Identical inputs produce identical Reports.
"""
import logging
from typing import Any, Mapping, Optional, Sequence, Union

from .calendar import DateLike, DayRange
from .classifier import RecordClassifier
from .fields import parse_position, safe_float
from .models import Diagnostics, Report
from .prices import PriceResolver
from .reducer import DailyPnLReducer
from .summary import summarize

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_LABEL = "hyperliquid_api"

Prices = Union[PriceResolver, Mapping[str, Mapping[str, float]], None]


def _as_resolver(prices: Prices, day_range: DayRange) -> PriceResolver:
    if isinstance(prices, PriceResolver):
        resolver = prices
    elif prices is None:
        resolver = PriceResolver()
    else:
        resolver = PriceResolver.from_series(prices)
    resolver.bind_range(day_range)
    return resolver


def compute_report(
    account: str,
    start: DateLike,
    end: DateLike,
    trades: Optional[Sequence[Any]],
    funding: Optional[Sequence[Any]],
    positions: Optional[Sequence[Any]],
    starting_equity: Any,
    prices: Prices = None,
    source_label: str = DEFAULT_SOURCE_LABEL,
    starting_equity_source: str = "account_value",
) -> Report:
    """
    Build the daily PnL / equity report for one account.

    Args:
        account: wallet or account identifier, echoed back
        start, end: inclusive range, date or YYYY-MM-DD
        trades: raw trade / fill records
        funding: raw funding records
        positions: raw open-position records (snapshot at query time)
        starting_equity: equity before the first day
        prices: PriceResolver, or {instrument: {day_key: close}}, or None
        source_label: data_source label for diagnostics
        starting_equity_source: "account_value" or "fallback_placeholder"

    Returns:
        Report

    Raises:
        InvalidDateRange: start/end unparseable or end before start
    """
    day_range = DayRange(start, end)

    equity0 = safe_float(starting_equity, default=None)
    if equity0 is None:
        logger.warning(f"Starting equity {starting_equity!r} is not a finite number, using 0.0")
        equity0 = 0.0

    trade_classifier = RecordClassifier.for_trades(trades)
    funding_classifier = RecordClassifier.for_funding(funding)
    snapshots = [parse_position(p) for p in (positions or [])]
    resolver = _as_resolver(prices, day_range)

    reducer = DailyPnLReducer(
        trades=trade_classifier,
        funding=funding_classifier,
        positions=snapshots,
        prices=resolver,
        starting_equity=equity0,
    )
    daily = tuple(reducer.reduce(day_range))
    summary = summarize(daily)

    has_activity = len(trade_classifier) > 0 or len(funding_classifier) > 0
    diagnostics = Diagnostics(
        data_source=source_label if has_activity else f"{source_label}_no_data",
        trades_found=len(trade_classifier),
        funding_records_found=len(funding_classifier),
        trades_in_range=trade_classifier.count_in(day_range),
        funding_records_in_range=funding_classifier.count_in(day_range),
        records_without_timestamp=trade_classifier.unresolved + funding_classifier.unresolved,
        positions_marked=sum(1 for s in snapshots if s.markable),
        equity_resets=reducer.equity_resets,
        starting_equity_source=starting_equity_source,
    )

    logger.info(
        f"PnL report {account} {day_range.start}..{day_range.end}: days={len(daily)}, "
        f"trades={diagnostics.trades_in_range}/{diagnostics.trades_found}, "
        f"funding={diagnostics.funding_records_in_range}/{diagnostics.funding_records_found}, "
        f"net={summary.net_pnl_usd}"
    )

    return Report(
        wallet=account,
        start=day_range.start.isoformat(),
        end=day_range.end.isoformat(),
        daily=daily,
        summary=summary,
        diagnostics=diagnostics,
        starting_equity=equity0,
    )
