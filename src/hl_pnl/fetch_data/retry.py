from dataclasses import dataclass

from ..core.config import Env_config


@dataclass(frozen=True)
class RetryPolicy:
    """重试策略, 取值来自 .env 的 MAX_RETRIES / RETRY_DELAY_SECONDS / RETRY_BACKOFF"""
    max_retries: int = 3
    delay_seconds: float = 1.0
    backoff: float = 2.0

    @classmethod
    def from_env(cls, env: Env_config) -> "RetryPolicy":
        return cls(
            max_retries=env.MAX_RETRIES,
            delay_seconds=env.RETRY_DELAY_SECONDS,
            backoff=env.RETRY_BACKOFF,
        )

    def delay_for(self, attempt: int) -> float:
        # exponential backoff: delay, delay*backoff, delay*backoff^2, ...
        return self.delay_seconds * (self.backoff ** attempt)
