"""
向外暴露 HyperliquidAPI, CoinGeckoAPI, 获取交易所数据和价格统一用这两个接口
"""

from .coingecko.coingecko_api import CoinGeckoAPI
from .hyperliquid.hyperliquid_api import AccountState, FetchResult, HyperliquidAPI
from .retry import RetryPolicy

__all__ = ["HyperliquidAPI", "CoinGeckoAPI", "AccountState", "FetchResult", "RetryPolicy"]
