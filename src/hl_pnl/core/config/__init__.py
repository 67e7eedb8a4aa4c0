"""
向外暴露 load_all_configs, 外部文件统一使用 load_all_configs 加载环境变量和配置变量
使用 Env_config, Config 规范化管理
"""
from typing import Tuple

from ._get_value import Miss_key_exception
from .load_config import Config, PnlConfig, PricesConfig, load_config
from .load_env_config import Env_config, load_env_config


def load_all_configs(
        dotenv_path: str = ".env",
        config_path: str | None = None,
    ) -> Tuple[Env_config, Config]:
    """
    获取 env, config 两个配置对象

    Returns:
        env_config: 环境变量配置对象
        config: 配置对象
    """
    env_config: Env_config = load_env_config(dotenv_path)
    config: Config = load_config(config_path)
    return env_config, config


__all__ = [
    "load_all_configs",
    "Env_config",
    "Config",
    "PnlConfig",
    "PricesConfig",
    "Miss_key_exception",
]
