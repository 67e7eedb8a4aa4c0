"""
Daily PnL reduction - one row per day, equity threaded forward.

Per-day figures (realized, fees, funding, unrealized) are independent reductions;
equity is a single sequential pass because day i starts from day i-1's equity.

Upstream data is third-party and often incomplete, so nothing inside the day loop is
fatal: malformed values coalesce to zero, unpriceable positions are skipped, and a
non-finite equity resets to the starting equity for that day.

Unrealized PnL uses the position snapshot taken at query time for every day of the
range. A position opened mid-range is therefore also marked on the days before it
existed. There are no historical position snapshots to do better with.
"""
import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, List, Sequence

from .calendar import DayRange
from .classifier import RecordClassifier
from .fields import PositionSnapshot, funding_amount, trade_fee, trade_realized_pnl
from .models import DailyRow
from .prices import PriceResolver

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# enough digits for any finite float quantized to cents
_CENTS_CONTEXT = Context(prec=400)


def round_cents(value: float) -> float:
    """
    Round to 2 decimals at emission; non-finite values are emitted as 0.0.

    Ties on the exact binary value round away from zero (0.125 -> 0.13, -0.125 -> -0.13),
    while 1.005, stored as 1.00499..., still rounds down.
    """
    if value is None or math.isnan(value) or math.isinf(value):
        return 0.0
    cents = Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP, context=_CENTS_CONTEXT)
    return float(cents) + 0.0  # +0.0 folds -0.0 into 0.0


@dataclass(frozen=True)
class DayFigures:
    """Unrounded per-day components."""
    realized: float
    unrealized: float
    fees: float
    funding: float

    @property
    def net(self) -> float:
        return self.realized + self.unrealized - self.fees + self.funding


def sum_realized(trades: Sequence[Any]) -> float:
    return sum((trade_realized_pnl(t) for t in trades), 0.0)


def sum_fees(trades: Sequence[Any]) -> float:
    return sum((trade_fee(t) for t in trades), 0.0)


def sum_funding(records: Sequence[Any]) -> float:
    return sum((funding_amount(r) for r in records), 0.0)


def mark_to_market(positions: Sequence[PositionSnapshot], prices: PriceResolver, day_key: str) -> float:
    """
    size * (close - entry) summed over the positions that can be priced on day_key.

    A position missing size, entry or that day's close is skipped as a whole term;
    no missing factor is ever replaced by zero inside the product.
    """
    unrealized = 0.0
    for position in positions:
        if not position.markable:
            continue
        close = prices.close_price(position.instrument, day_key)
        if close is None or close == 0:
            continue
        unrealized += position.size * (close - position.entry_price)
    return unrealized


class DailyPnLReducer:
    """
    Folds classified records into DailyRows.

    Args:
        trades: trade classifier for the run
        funding: funding classifier for the run
        positions: parsed open positions
        prices: price resolver for the run
        starting_equity: equity before the first day
    """

    def __init__(
        self,
        trades: RecordClassifier,
        funding: RecordClassifier,
        positions: Sequence[PositionSnapshot],
        prices: PriceResolver,
        starting_equity: float,
    ):
        self.trades = trades
        self.funding = funding
        self.positions = list(positions)
        self.prices = prices
        self.starting_equity = starting_equity
        self.equity_resets = 0

    def figures_for(self, day_key: str) -> DayFigures:
        day_trades = self.trades.for_day(day_key)
        day_funding = self.funding.for_day(day_key)
        return DayFigures(
            realized=sum_realized(day_trades),
            unrealized=mark_to_market(self.positions, self.prices, day_key),
            fees=sum_fees(day_trades),
            funding=sum_funding(day_funding),
        )

    def reduce(self, day_range: DayRange) -> List[DailyRow]:
        rows: List[DailyRow] = []
        equity = self.starting_equity

        for day_key in day_range:
            figures = self.figures_for(day_key)
            net = figures.net
            # unrounded equity carries into the next day
            equity = equity + net
            if math.isnan(equity) or math.isinf(equity):
                logger.warning(
                    f"Non-finite equity on {day_key} (net={net}), resetting to starting equity "
                    f"{self.starting_equity}"
                )
                self.equity_resets += 1
                equity = self.starting_equity

            rows.append(DailyRow(
                date=day_key,
                realized_pnl_usd=round_cents(figures.realized),
                unrealized_pnl_usd=round_cents(figures.unrealized),
                fees_usd=round_cents(figures.fees),
                funding_usd=round_cents(figures.funding),
                net_pnl_usd=round_cents(net),
                equity_usd=round_cents(equity),
            ))

        return rows
