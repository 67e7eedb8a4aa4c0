import os
from dataclasses import dataclass
from typing import Mapping

import dotenv

from ._get_value import parse_bool


@dataclass(frozen=True)
class Env_config:
    HYPERLIQUID_API_URL: str
    COINGECKO_API_URL: str

    HTTP_TIMEOUT: float
    MAX_RETRIES: int
    RETRY_DELAY_SECONDS: float
    RETRY_BACKOFF: float

    LOG_LEVEL: str
    LOG_DIR: str
    LOG_CONSOLE: bool

ENV_DEFAULTS = {
    "HYPERLIQUID_API_URL": "https://api.hyperliquid.xyz",
    "COINGECKO_API_URL": "https://api.coingecko.com/api/v3",
    "HTTP_TIMEOUT": "10",
    "MAX_RETRIES": "3",
    "RETRY_DELAY_SECONDS": "1",
    "RETRY_BACKOFF": "2",
    "LOG_LEVEL": "INFO",
    "LOG_DIR": "data",
    "LOG_CONSOLE": "false",
}

def _get(env: Mapping[str, str], key: str) -> str:
    value = env.get(key)
    if value is None or not str(value).strip():
        return ENV_DEFAULTS[key]
    return str(value).strip()

def parse_env_config(env: Mapping[str, str]) -> Env_config:
    """
    从 env 映射中解析配置, 所有键都有默认值, 数值键非法时抛出 ValueError
    """
    max_retries = int(_get(env, "MAX_RETRIES"))
    if max_retries < 1:
        raise ValueError(f"MAX_RETRIES must be >= 1, got {max_retries}")

    return Env_config(
        HYPERLIQUID_API_URL=_get(env, "HYPERLIQUID_API_URL").rstrip("/"),
        COINGECKO_API_URL=_get(env, "COINGECKO_API_URL").rstrip("/"),

        HTTP_TIMEOUT=float(_get(env, "HTTP_TIMEOUT")),
        MAX_RETRIES=max_retries,
        RETRY_DELAY_SECONDS=float(_get(env, "RETRY_DELAY_SECONDS")),
        RETRY_BACKOFF=float(_get(env, "RETRY_BACKOFF")),

        LOG_LEVEL=_get(env, "LOG_LEVEL").upper(),
        LOG_DIR=_get(env, "LOG_DIR"),
        LOG_CONSOLE=parse_bool(_get(env, "LOG_CONSOLE")),
    )

def load_env_config(dotenv_path: str = ".env") -> Env_config:
    # .env 不存在时 load_dotenv 静默跳过, 全部走默认值
    dotenv.load_dotenv(dotenv_path)
    return parse_env_config(os.environ)
