"""
PnL (Profit and Loss) API 端点

GET /api/hyperliquid/{wallet}/pnl?start=YYYY-MM-DD&end=YYYY-MM-DD
返回区间内每日的已实现/未实现盈亏、手续费、资金费和权益曲线.
"""

import logging
import re
from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from .models import PnlReportResponse
from ..core.config import Config, Env_config, load_all_configs
from ..engine import InvalidDateRange
from ..services.pnl_service import get_wallet_pnl

logger = logging.getLogger(__name__)

pnl_router = APIRouter(tags=["pnl"])

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@lru_cache(maxsize=1)
def get_configs() -> Tuple[Env_config, Config]:
    """进程内只加载一次 .env 和 config.yaml"""
    return load_all_configs()


def _missing_param_errors(params: Dict[str, Optional[str]]) -> List[Dict[str, str]]:
    errors = []
    for name, value in params.items():
        if value is None or not value.strip():
            errors.append({"param": name, "msg": "Invalid value", "location": "query"})
    return errors


def _parse_date(value: str) -> Optional[date]:
    """
    解析 YYYY-MM-DD, 格式不符或不是真实日期 (如 2025-02-30) 时返回 None
    """
    if not DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def validate_date_range(start: str, end: str, max_range_days: int) -> Tuple[Optional[date], Optional[date], Optional[JSONResponse]]:
    """
    校验日期参数

    Returns:
        (start_day, end_day, None) 或 (None, None, 400 响应)
    """
    start_day = _parse_date(start.strip())
    end_day = _parse_date(end.strip())
    if start_day is None or end_day is None:
        return None, None, _error("Invalid date format. Use YYYY-MM-DD")

    if start_day > end_day:
        return None, None, _error("Invalid date range")

    if (end_day - start_day).days > max_range_days:
        return None, None, _error(f"Date range cannot exceed {max_range_days} days")

    return start_day, end_day, None


@pnl_router.get("/api/hyperliquid/{wallet}/pnl", response_model=PnlReportResponse)
async def get_hyperliquid_pnl(
    wallet: str,
    start: Optional[str] = Query(default=None, description="起始日期 (YYYY-MM-DD, UTC, 含当天)"),
    end: Optional[str] = Query(default=None, description="结束日期 (YYYY-MM-DD, UTC, 含当天)"),
):
    """
    获取钱包的每日 PnL 和权益曲线

    Args:
        wallet: 钱包地址
        start: 起始日期
        end: 结束日期

    Returns:
        PnL 报告; 参数错误时返回 400
    """
    errors = _missing_param_errors({"start": start, "end": end})
    if not wallet.strip():
        errors.insert(0, {"param": "wallet", "msg": "Invalid value", "location": "params"})
    if errors:
        return JSONResponse(status_code=400, content={"errors": errors})

    env, config = get_configs()
    start_day, end_day, error_response = validate_date_range(start, end, config.pnl.max_range_days)
    if error_response is not None:
        return error_response

    try:
        payload: Dict[str, Any] = await get_wallet_pnl(wallet.strip(), start_day, end_day, env, config)
    except InvalidDateRange as e:
        logger.warning(f"Rejected range for {wallet}: {e}")
        return _error("Invalid date range")
    except Exception:
        logger.exception(f"Failed to build PnL report for {wallet} {start}..{end}")
        raise

    return PnlReportResponse.model_validate(payload)
