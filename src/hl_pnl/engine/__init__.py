"""
PnL reconstruction engine.

外部统一使用 compute_report 生成报告, 内部组件 (normalizer / bucketer / reducer) 不对外暴露
"""

from .calendar import InvalidDateRange
from .models import DailyRow, Diagnostics, Report, Summary
from .pnl_engine import compute_report
from .prices import PriceResolver, daily_closes_from_samples

__all__ = [
    "compute_report",
    "Report",
    "DailyRow",
    "Summary",
    "Diagnostics",
    "InvalidDateRange",
    "PriceResolver",
    "daily_closes_from_samples",
]
