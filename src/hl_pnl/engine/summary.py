from typing import Sequence

from .models import DailyRow, Summary
from .reducer import round_cents


def summarize(daily: Sequence[DailyRow]) -> Summary:
    """
    Field-wise totals of the already-rounded daily rows, rounded again to cents.

    Totals are sums of the emitted (rounded) parts, not re-derived from raw records,
    so summary.x == round(sum(row.x)) holds exactly.
    """
    return Summary(
        total_realized_usd=round_cents(sum((d.realized_pnl_usd for d in daily), 0.0)),
        total_unrealized_usd=round_cents(sum((d.unrealized_pnl_usd for d in daily), 0.0)),
        total_fees_usd=round_cents(sum((d.fees_usd for d in daily), 0.0)),
        total_funding_usd=round_cents(sum((d.funding_usd for d in daily), 0.0)),
        net_pnl_usd=round_cents(sum((d.net_pnl_usd for d in daily), 0.0)),
    )
