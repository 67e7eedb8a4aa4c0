from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class DailyRow:
    date: str                   # UTC day key, YYYY-MM-DD
    realized_pnl_usd: float
    unrealized_pnl_usd: float   # mark-to-market of currently open positions at that day's close
    fees_usd: float
    funding_usd: float
    net_pnl_usd: float          # realized + unrealized - fees + funding
    equity_usd: float           # previous equity + net


@dataclass(frozen=True)
class Summary:
    total_realized_usd: float
    total_unrealized_usd: float
    total_fees_usd: float
    total_funding_usd: float
    net_pnl_usd: float


@dataclass(frozen=True)
class Diagnostics:
    data_source: str
    trades_found: int
    funding_records_found: int
    trades_in_range: int
    funding_records_in_range: int
    records_without_timestamp: int
    positions_marked: int
    equity_resets: int
    starting_equity_source: str


@dataclass(frozen=True)
class Report:
    wallet: str
    start: str
    end: str
    daily: Tuple[DailyRow, ...]
    summary: Summary
    diagnostics: Diagnostics
    starting_equity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "start": self.start,
            "end": self.end,
            "daily": [asdict(row) for row in self.daily],
            "summary": asdict(self.summary),
            "diagnostics": asdict(self.diagnostics),
        }
