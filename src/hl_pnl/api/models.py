from typing import List, Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: Literal["OK"]
    service: Literal["hyperliquid-pnl"]
    version: str
    timestamp: str # ISO 格式

# ==================== PnL Report Models ====================

class PnlDailyRow(BaseModel):
    """单日 PnL"""
    date: str                       # YYYY-MM-DD (UTC)
    realized_pnl_usd: float         # 当日已实现盈亏
    unrealized_pnl_usd: float       # 当前持仓按当日收盘价估值 (近似: 假设持仓整个区间都存在)
    fees_usd: float                 # 当日手续费
    funding_usd: float              # 当日资金费 (正为收入)
    net_pnl_usd: float              # realized + unrealized - fees + funding
    equity_usd: float               # 前一日权益 + net

class PnlSummary(BaseModel):
    """区间汇总 (按已四舍五入的每日值求和)"""
    total_realized_usd: float
    total_unrealized_usd: float
    total_fees_usd: float
    total_funding_usd: float
    net_pnl_usd: float

class PnlDiagnostics(BaseModel):
    """数据质量诊断"""
    data_source: str                # hyperliquid_api / hyperliquid_api_no_data
    trades_found: int
    funding_records_found: int
    trades_in_range: int
    funding_records_in_range: int
    records_without_timestamp: int  # 时间戳无法解析, 未计入任何一天
    positions_marked: int
    equity_resets: int              # 权益出现 NaN/inf 被重置的天数
    starting_equity_source: Literal["account_value", "fallback_placeholder"]
    # 采集层字段
    last_api_call: str              # ISO 格式
    api_status: Literal["connected", "degraded"]
    failed_sources: List[str]

class PnlReportResponse(BaseModel):
    wallet: str
    start: str
    end: str
    daily: List[PnlDailyRow]
    summary: PnlSummary
    diagnostics: PnlDiagnostics
