"""
Hyperliquid info API 客户端 (POST /info)

所有拉取都不会向上抛异常: 失败时返回空结果并标记 ok=False, 由 service 层汇总成 api_status.
"""
import asyncio
import logging
import ssl
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, List, Optional

import certifi
import httpx

from ...core.config import Env_config
from ...engine.fields import resolve_field, safe_float
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.hyperliquid.xyz"
HTTP_TIMEOUT = 10  # 秒

# 成交记录的请求链: 先用标准的 userFills, 失败再退回旧版 userTrades
TRADE_REQUEST_TYPES = ("userFills", "userTrades")
ACCOUNT_VALUE_FIELDS = ("marginSummary.accountValue", "accountValue")

# SSL 配置 - 使用 certifi 提供的 CA 证书
SSL_CONTEXT = ssl.create_default_context(cafile=certifi.where())


@dataclass
class FetchResult:
    data: Any
    ok: bool = True


@dataclass
class AccountState:
    positions: List[Dict[str, Any]] = field(default_factory=list)
    account_value: Optional[float] = None


def _retry_request(policy: RetryPolicy):
    """Retry an async request with exponential backoff; 4xx other than 429 is not retried."""
    def decorator(func: Callable[..., Awaitable[httpx.Response]]):
        @wraps(func)
        async def wrapper(*args, **kwargs) -> httpx.Response:
            last_exception: Optional[Exception] = None
            for attempt in range(policy.max_retries):
                try:
                    response = await func(*args, **kwargs)
                    response.raise_for_status()
                    return response
                except httpx.HTTPStatusError as e:
                    last_exception = e
                    status = e.response.status_code
                    if 400 <= status < 500 and status != 429:
                        logger.warning(f"Client error {status}, not retrying: {e}")
                        raise
                except httpx.RequestError as e:
                    last_exception = e

                if attempt < policy.max_retries - 1:
                    delay = policy.delay_for(attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{policy.max_retries}): "
                        f"{last_exception}. Retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"Request failed after {policy.max_retries} attempts: {last_exception}")

            raise last_exception

        return wrapper

    return decorator


class HyperliquidAPI:
    """
    Args:
        base_url: API 根地址, 不带 /info
        retry: 重试策略
        timeout: 单次请求超时(秒)
        client: 复用的 httpx.AsyncClient; 不传时每次请求临时创建
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        retry: Optional[RetryPolicy] = None,
        timeout: float = HTTP_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.info_url = f"{base_url.rstrip('/')}/info"
        self.retry = retry or RetryPolicy()
        self.timeout = timeout
        self.client = client

    @classmethod
    def from_env(cls, env: Env_config, client: Optional[httpx.AsyncClient] = None) -> "HyperliquidAPI":
        return cls(
            base_url=env.HYPERLIQUID_API_URL,
            retry=RetryPolicy.from_env(env),
            timeout=env.HTTP_TIMEOUT,
            client=client,
        )

    async def _info(self, payload: Dict[str, Any]) -> Any:
        """POST /info, 返回解析后的 JSON"""

        @_retry_request(self.retry)
        async def _request(client: httpx.AsyncClient) -> httpx.Response:
            return await client.post(self.info_url, json=payload)

        if self.client is not None:
            response = await _request(self.client)
        else:
            async with httpx.AsyncClient(timeout=self.timeout, verify=SSL_CONTEXT) as client:
                response = await _request(client)
        return response.json()

    async def fetch_user_trades(self, wallet: str) -> FetchResult:
        """获取用户成交记录, 依次尝试 TRADE_REQUEST_TYPES"""
        for request_type in TRADE_REQUEST_TYPES:
            try:
                data = await self._info({"type": request_type, "user": wallet})
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"{request_type} failed for {wallet}: {type(e).__name__}: {e}")
                continue
            if isinstance(data, list):
                return FetchResult(data=data)
            logger.warning(f"{request_type} returned unexpected payload type {type(data).__name__}")
        return FetchResult(data=[], ok=False)

    async def fetch_user_funding(
        self,
        wallet: str,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None,
    ) -> FetchResult:
        """获取用户资金费记录, startTime 缺省为 0 (全部历史)"""
        payload: Dict[str, Any] = {"type": "userFunding", "user": wallet, "startTime": int(start_ms or 0)}
        if end_ms is not None:
            payload["endTime"] = int(end_ms)
        try:
            data = await self._info(payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"userFunding failed for {wallet}: {type(e).__name__}: {e}")
            return FetchResult(data=[], ok=False)
        if not isinstance(data, list):
            logger.warning(f"userFunding returned unexpected payload type {type(data).__name__}")
            return FetchResult(data=[], ok=False)
        return FetchResult(data=data)

    async def fetch_user_state(self, wallet: str) -> FetchResult:
        """获取账户状态: 持仓快照 + 账户权益"""
        try:
            data = await self._info({"type": "clearinghouseState", "user": wallet})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"clearinghouseState failed for {wallet}: {type(e).__name__}: {e}")
            return FetchResult(data=AccountState(), ok=False)
        if not isinstance(data, dict):
            logger.warning(f"clearinghouseState returned unexpected payload type {type(data).__name__}")
            return FetchResult(data=AccountState(), ok=False)

        positions = data.get("assetPositions") or []
        return FetchResult(data=AccountState(
            positions=list(positions) if isinstance(positions, list) else [],
            account_value=safe_float(resolve_field(data, ACCOUNT_VALUE_FIELDS), default=None),
        ))
