from typing import Any, Mapping

TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "n", "off"})


class Miss_key_exception(Exception):
    """
    config.yaml 缺少必需键 (或整个 section)
    """
    def __init__(self, key: str, section: str = ""):
        self.key = key
        self.section = section
        location = f"{section}.{key}" if section else key
        self.message = f"config.yaml is missing required key '{location}'"
        super().__init__(self.message)

def get_value_from_dict(config: Mapping[str, Any], key: str, section: str = "") -> Any:
    """
    读取 yaml section 中的必需键

    Args:
        config: yaml 解析出的 section
        key: 键名
        section: 所在 section 名, 写进报错信息

    Raises:
        Miss_key_exception: 键不存在, 或 config 不是字典 (yaml 中 section 写成了标量/列表)
    """
    if isinstance(config, Mapping) and key in config:
        return config[key]
    raise Miss_key_exception(key, section)

def parse_bool(value: str | bool) -> bool:
    """
    解析 .env 中的开关值, 大小写和首尾空白不敏感

    Raises:
        ValueError: 不在 TRUE_STRINGS / FALSE_STRINGS 中
    """
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in TRUE_STRINGS:
        return True
    if normalized in FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")
