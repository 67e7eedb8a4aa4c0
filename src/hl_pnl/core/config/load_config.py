import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from ._get_value import get_value_from_dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PnlConfig:
    max_range_days: int
    fallback_starting_equity: float  # 占位值, 取不到账户权益时使用, 不是真实账户数据
    data_source_label: str

@dataclass(frozen=True)
class PricesConfig:
    vs_currency: str
    coin_map: Dict[str, str] = field(default_factory=dict)  # 交易所 coin -> CoinGecko id

@dataclass(frozen=True)
class Config:
    pnl: PnlConfig
    prices: PricesConfig

DEFAULT_ROW_CONFIG: Dict[str, Any] = {
    "pnl": {
        "max_range_days": 90,
        "fallback_starting_equity": 10000,
        "data_source_label": "hyperliquid_api",
    },
    "prices": {
        "vs_currency": "usd",
        "coin_map": {
            "BTC": "bitcoin",
            "ETH": "ethereum",
            "SOL": "solana",
        },
    },
}

def read_row_config(config_path: str) -> Dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        row_config = yaml.safe_load(f)
    return row_config or {}

def parse_config(row_config: Dict[str, Any]) -> Config:
    pnl_section = get_value_from_dict(row_config, "pnl")
    prices_section = get_value_from_dict(row_config, "prices")

    max_range_days = int(get_value_from_dict(pnl_section, "max_range_days", "pnl"))
    if max_range_days < 1:
        raise ValueError(f"pnl.max_range_days must be >= 1, got {max_range_days}")

    coin_map = get_value_from_dict(prices_section, "coin_map", "prices") or {}

    return Config(
        pnl=PnlConfig(
            max_range_days=max_range_days,
            fallback_starting_equity=float(get_value_from_dict(pnl_section, "fallback_starting_equity", "pnl")),
            data_source_label=str(get_value_from_dict(pnl_section, "data_source_label", "pnl")),
        ),
        prices=PricesConfig(
            vs_currency=str(get_value_from_dict(prices_section, "vs_currency", "prices")).lower(),
            coin_map={str(k): str(v) for k, v in coin_map.items()},
        ),
    )

def load_config(config_path: str | None = None) -> Config:
    """
    读取 config.yaml, 路径优先级: 参数 > CONFIG_PATH 环境变量 > ./config.yaml

    文件不存在时使用内置默认配置; 文件存在但缺键时抛出 Miss_key_exception
    """
    path = config_path or os.getenv("CONFIG_PATH", "config.yaml")
    if not Path(path).exists():
        logger.warning(f"{path} not found, using built-in default config")
        return parse_config(DEFAULT_ROW_CONFIG)
    return parse_config(read_row_config(path))
