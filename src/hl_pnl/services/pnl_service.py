"""
Wallet PnL service - upstream fan-out, price prefetch, then the pure engine.

Flow:
1. trades / funding / account state are fetched concurrently; each one degrades to an
   empty result on its own, none of them fails the request.
2. Starting equity is the venue's account value, or the configured placeholder.
3. Close series are prefetched once per distinct position instrument, concurrently.
4. compute_report runs over the materialised inputs; collaborator diagnostics
   (last_api_call, api_status, failed_sources) are attached afterwards.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from ..core.config import Config, Env_config
from ..engine import PriceResolver, compute_report
from ..engine.calendar import DateLike, DayRange
from ..engine.fields import parse_position
from ..fetch_data import AccountState, CoinGeckoAPI, FetchResult, HyperliquidAPI
from ..fetch_data.hyperliquid.hyperliquid_api import SSL_CONTEXT
from ..utils.time_utils import utc_now_iso

logger = logging.getLogger(__name__)

STARTING_EQUITY_FROM_ACCOUNT = "account_value"
STARTING_EQUITY_PLACEHOLDER = "fallback_placeholder"


@dataclass
class WalletInputs:
    trades: List[Any] = field(default_factory=list)
    funding: List[Any] = field(default_factory=list)
    state: AccountState = field(default_factory=AccountState)
    failed_sources: List[str] = field(default_factory=list)


def _settle(name: str, outcome: Any, empty: Any, failed: List[str]) -> Any:
    """Unwrap one gather() outcome; exceptions and ok=False both count as degraded."""
    if isinstance(outcome, BaseException):
        logger.warning(f"{name} fetch raised {type(outcome).__name__}: {outcome}")
        failed.append(name)
        return empty
    if isinstance(outcome, FetchResult):
        if not outcome.ok:
            logger.warning(f"{name} fetch degraded to empty result")
            failed.append(name)
        return outcome.data
    return outcome


async def fetch_wallet_inputs(api: HyperliquidAPI, wallet: str, start_ms: Optional[int] = None) -> WalletInputs:
    trades, funding, state = await asyncio.gather(
        api.fetch_user_trades(wallet),
        api.fetch_user_funding(wallet, start_ms=start_ms),
        api.fetch_user_state(wallet),
        return_exceptions=True,
    )
    failed: List[str] = []
    return WalletInputs(
        trades=_settle("trades", trades, [], failed),
        funding=_settle("funding", funding, [], failed),
        state=_settle("account_state", state, AccountState(), failed),
        failed_sources=failed,
    )


async def prefetch_close_prices(
    prices_api: CoinGeckoAPI,
    instruments: Iterable[str],
    start: DateLike,
    end: DateLike,
) -> Dict[str, Dict[str, float]]:
    """One fetch per distinct instrument, run concurrently in worker threads."""
    unique = sorted(set(instruments))
    if not unique:
        return {}

    results = await asyncio.gather(
        *(asyncio.to_thread(prices_api.fetch_daily_closes, instrument, start, end) for instrument in unique),
        return_exceptions=True,
    )

    series: Dict[str, Dict[str, float]] = {}
    for instrument, result in zip(unique, results):
        if isinstance(result, BaseException):
            logger.warning(f"Close price prefetch failed for {instrument}: {type(result).__name__}: {result}")
            series[instrument] = {}
        else:
            series[instrument] = dict(result or {})
    return series


def resolve_starting_equity(state: AccountState, fallback: float) -> Tuple[float, str]:
    """
    账户权益取不到 (缺失或为 0) 时使用配置中的占位值, 并在 diagnostics 中标明来源
    """
    if state.account_value:
        return state.account_value, STARTING_EQUITY_FROM_ACCOUNT
    logger.warning(f"No account value reported, using placeholder starting equity {fallback}")
    return fallback, STARTING_EQUITY_PLACEHOLDER


def _epoch_ms(day: date) -> int:
    return (day - date(1970, 1, 1)).days * 86_400_000


async def get_wallet_pnl(
    wallet: str,
    start: DateLike,
    end: DateLike,
    env: Env_config,
    config: Config,
    hyperliquid: Optional[HyperliquidAPI] = None,
    coingecko: Optional[CoinGeckoAPI] = None,
) -> Dict[str, Any]:
    """
    获取钱包在 [start, end] 内的每日 PnL 报告

    Args:
        wallet: 钱包地址
        start, end: 日期或 YYYY-MM-DD, 闭区间
        env, config: 配置对象
        hyperliquid, coingecko: 可注入的客户端, 不传时按配置创建

    Returns:
        Report 字典 + 采集层 diagnostics

    Raises:
        InvalidDateRange: 日期非法或 end 早于 start
    """
    day_range = DayRange(start, end)
    start_ms = _epoch_ms(day_range.start)

    if hyperliquid is None:
        async with httpx.AsyncClient(timeout=env.HTTP_TIMEOUT, verify=SSL_CONTEXT) as client:
            inputs = await fetch_wallet_inputs(HyperliquidAPI.from_env(env, client=client), wallet, start_ms)
    else:
        inputs = await fetch_wallet_inputs(hyperliquid, wallet, start_ms)

    starting_equity, equity_source = resolve_starting_equity(inputs.state, config.pnl.fallback_starting_equity)

    if coingecko is None:
        coingecko = CoinGeckoAPI.from_env(
            env,
            coin_map=config.prices.coin_map,
            vs_currency=config.prices.vs_currency,
        )
    snapshots = [parse_position(p) for p in inputs.state.positions]
    series = await prefetch_close_prices(
        coingecko,
        (s.instrument for s in snapshots if s.markable),
        day_range.start,
        day_range.end,
    )

    report = compute_report(
        wallet,
        day_range.start,
        day_range.end,
        trades=inputs.trades,
        funding=inputs.funding,
        positions=inputs.state.positions,
        starting_equity=starting_equity,
        prices=PriceResolver.from_series(series),
        source_label=config.pnl.data_source_label,
        starting_equity_source=equity_source,
    )

    payload = report.to_dict()
    payload["diagnostics"].update(
        last_api_call=utc_now_iso(),
        api_status="degraded" if inputs.failed_sources else "connected",
        failed_sources=list(inputs.failed_sources),
    )
    return payload
