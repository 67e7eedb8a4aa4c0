"""
CoinGecko 日收盘价客户端

GET /coins/{id}/market_chart/range 返回 [[ts_ms, price], ...], 按 UTC 日期分桶, 每天取最后一个样本作为收盘价.
未知 coin 或请求失败时返回空字典, 不向上抛异常.
"""
import logging
import time
from datetime import date, timedelta
from typing import Any, Dict, Mapping, Optional

import certifi
import requests
from requests.exceptions import HTTPError, RequestException

from ...core.config import Env_config
from ...engine.calendar import DateLike, parse_day
from ...engine.prices import daily_closes_from_samples
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.coingecko.com/api/v3"
HTTP_TIMEOUT = 10  # 秒

DEFAULT_COIN_MAP = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
}


def _retry_request(policy: RetryPolicy):
    """Decorator to add retry logic with exponential backoff to API requests"""
    def decorator(func):
        def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(policy.max_retries):
                try:
                    response = func(*args, **kwargs)
                    response.raise_for_status()
                    return response
                except HTTPError as e:
                    last_exception = e
                    # Don't retry on 4xx client errors (except 429 rate limit)
                    if e.response is not None and 400 <= e.response.status_code < 500 and e.response.status_code != 429:
                        logger.warning(f"Client error {e.response.status_code}, not retrying: {e}")
                        raise
                except RequestException as e:
                    last_exception = e

                if attempt < policy.max_retries - 1:
                    delay = policy.delay_for(attempt)
                    logger.warning(f"Request failed (attempt {attempt + 1}/{policy.max_retries}): {last_exception}. Retrying in {delay}s...")
                    time.sleep(delay)
                else:
                    logger.error(f"Request failed after {policy.max_retries} attempts: {last_exception}")

            raise last_exception

        return wrapper

    return decorator


def _epoch_seconds(day: date) -> int:
    """UTC midnight of day, in epoch seconds"""
    return (day - date(1970, 1, 1)).days * 86400


class CoinGeckoAPI:
    """
    Args:
        base_url: API 根地址
        coin_map: 交易所 coin -> CoinGecko id
        vs_currency: 计价货币
        retry: 重试策略
        timeout: 单次请求超时(秒)
        session: 复用的 requests.Session; 不传时使用 certifi 校验的新 session
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        coin_map: Optional[Mapping[str, str]] = None,
        vs_currency: str = "usd",
        retry: Optional[RetryPolicy] = None,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.coin_map = {k.upper(): v for k, v in (coin_map or DEFAULT_COIN_MAP).items()}
        self.vs_currency = vs_currency
        self.retry = retry or RetryPolicy()
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.verify = certifi.where()
        self.session = session

    @classmethod
    def from_env(
        cls,
        env: Env_config,
        coin_map: Optional[Mapping[str, str]] = None,
        vs_currency: str = "usd",
    ) -> "CoinGeckoAPI":
        return cls(
            base_url=env.COINGECKO_API_URL,
            coin_map=coin_map,
            vs_currency=vs_currency,
            retry=RetryPolicy.from_env(env),
            timeout=env.HTTP_TIMEOUT,
        )

    def coin_id(self, coin: str) -> Optional[str]:
        return self.coin_map.get(str(coin).strip().upper())

    def get_market_chart_range(self, coin_id: str, from_ts: int, to_ts: int) -> Dict[str, Any]:
        """原始 market_chart/range 响应"""
        url = f"{self.base_url}/coins/{coin_id}/market_chart/range"
        params = {"vs_currency": self.vs_currency, "from": from_ts, "to": to_ts}

        @_retry_request(self.retry)
        def _request():
            return self.session.get(url, params=params, timeout=self.timeout)

        response = _request()
        return response.json()

    def fetch_daily_closes(self, coin: str, start: DateLike, end: DateLike) -> Dict[str, float]:
        """
        获取 [start, end] 内每个 UTC 日的收盘价

        Args:
            coin: 交易所 coin, 如 "BTC"
            start, end: 日期或 YYYY-MM-DD

        Returns:
            {day_key: close}, 未知 coin 或失败时为 {}
        """
        coin_id = self.coin_id(coin)
        if not coin_id:
            logger.info(f"No CoinGecko id mapped for {coin}, skipping price fetch")
            return {}

        start_day = parse_day(start)
        end_day = parse_day(end)
        # to 取 end 次日 0 点, 覆盖 end 当天全部样本
        from_ts = _epoch_seconds(start_day)
        to_ts = _epoch_seconds(end_day + timedelta(days=1))

        try:
            data = self.get_market_chart_range(coin_id, from_ts, to_ts)
        except (RequestException, ValueError) as e:
            logger.warning(f"CoinGecko price fetch failed for {coin} ({coin_id}): {type(e).__name__}: {e}")
            return {}

        samples = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(samples, list):
            logger.warning(f"CoinGecko returned no price samples for {coin} ({coin_id})")
            return {}

        closes = daily_closes_from_samples(samples)
        return {day: price for day, price in closes.items() if start_day.isoformat() <= day <= end_day.isoformat()}
