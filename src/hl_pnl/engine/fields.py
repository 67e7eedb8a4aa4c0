"""
Field resolution for loosely-shaped upstream records.

Each record kind has an explicit, ordered list of candidate fields. The first candidate
that is present wins; dotted names walk into nested mappings ("delta.usdc").
Keeping the orders here, rather than inline in the reducer, makes the coalescing
policy auditable on its own.
"""
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

# ---------- resolution orders ----------

TRADE_TIMESTAMP_FIELDS = ("time", "timestamp", "closedPxTime")
TRADE_REALIZED_FIELDS = ("realizedPnl", "closedPnl", "pnl")
TRADE_FEE_FIELDS = ("fee",)
TRADE_INSTRUMENT_FIELDS = ("coin", "symbol")

FUNDING_TIMESTAMP_FIELDS = ("time", "timestamp")
FUNDING_AMOUNT_FIELDS = ("delta.usdc", "funding", "amount")

POSITION_WRAPPER_FIELD = "position"
POSITION_INSTRUMENT_FIELDS = ("coin", "symbol")
POSITION_SIZE_FIELDS = ("szi", "size")
POSITION_ENTRY_FIELDS = ("entryPx", "entryPrice")


def _lookup(record: Mapping[str, Any], path: str) -> Any:
    node: Any = record
    for part in path.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _is_numeric_zero(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def resolve_field(record: Any, candidates: tuple[str, ...], zero_is_missing: bool = False) -> Any:
    """
    按顺序返回第一个存在的字段值 (None 和空字符串视为缺失)

    Args:
        record: 上游原始记录, 非 Mapping 时直接视为缺失
        candidates: 候选字段名, 支持 "a.b" 形式的嵌套路径
        zero_is_missing: 数值 0 也视为缺失, 继续尝试下一个候选 (时间戳字段使用)

    Returns:
        第一个存在的值, 全部缺失时返回 None
    """
    if not isinstance(record, Mapping):
        return None
    for path in candidates:
        value = _lookup(record, path)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if zero_is_missing and _is_numeric_zero(value):
            continue
        return value
    return None


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    安全地将值转换为 float, 处理 NaN/inf/None/空字符串等异常情况
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


# ---------- per-kind accessors ----------

def trade_timestamp(trade: Any) -> Any:
    return resolve_field(trade, TRADE_TIMESTAMP_FIELDS, zero_is_missing=True)


def trade_realized_pnl(trade: Any) -> float:
    return safe_float(resolve_field(trade, TRADE_REALIZED_FIELDS))


def trade_fee(trade: Any) -> float:
    return safe_float(resolve_field(trade, TRADE_FEE_FIELDS))


def funding_timestamp(record: Any) -> Any:
    return resolve_field(record, FUNDING_TIMESTAMP_FIELDS, zero_is_missing=True)


def funding_amount(record: Any) -> float:
    return safe_float(resolve_field(record, FUNDING_AMOUNT_FIELDS))


@dataclass(frozen=True)
class PositionSnapshot:
    """Open position at query time. size and entry_price are None when missing or zero."""
    instrument: Optional[str]
    size: Optional[float]
    entry_price: Optional[float]

    @property
    def markable(self) -> bool:
        return bool(self.instrument) and self.size is not None and self.entry_price is not None


def _nonzero(value: Optional[float]) -> Optional[float]:
    # zero size adds nothing and zero entry would turn the whole close price into PnL
    if value is None or value == 0:
        return None
    return value


def parse_position(record: Any) -> PositionSnapshot:
    """Read one position record, unwrapping the venue's {"position": {...}} envelope if present."""
    payload = record
    if isinstance(record, Mapping) and isinstance(record.get(POSITION_WRAPPER_FIELD), Mapping):
        payload = record[POSITION_WRAPPER_FIELD]

    instrument = resolve_field(payload, POSITION_INSTRUMENT_FIELDS)
    return PositionSnapshot(
        instrument=str(instrument).strip() if instrument is not None else None,
        size=_nonzero(safe_float(resolve_field(payload, POSITION_SIZE_FIELDS), default=None)),
        entry_price=_nonzero(safe_float(resolve_field(payload, POSITION_ENTRY_FIELDS), default=None)),
    )
