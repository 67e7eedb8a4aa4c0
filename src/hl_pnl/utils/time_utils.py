from datetime import datetime, timezone


def utc_now_iso() -> str:
    """当前 UTC 时间, ISO 格式精确到秒, 如 2025-01-04T08:00:00+00:00"""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
