"""
Logging setup for the PnL service.

One rotating file per process under LOG_DIR, rolled at UTC midnight and kept for
backup_count days. Rolled files are renamed <prefix>_YYYY_MM_DD.log so a day's log
sorts next to its siblings. LOG_CONSOLE=true additionally echoes to stderr.
"""
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
ROTATED_SUFFIX = "%Y_%m_%d"


def rotated_log_namer(log_file_prefix: str):
    """server_hl_pnl.log.2025_12_28 -> server_hl_pnl_2025_12_28.log"""
    def namer(default_name: str) -> str:
        rolled = Path(default_name)
        stamp = rolled.name.rsplit(".", 1)[-1]
        return str(rolled.with_name(f"{log_file_prefix}_{stamp}.log"))

    return namer


def _daily_file_handler(log_file: Path, log_file_prefix: str, backup_count: int, use_utc: bool) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        interval=1,
        backupCount=backup_count,
        utc=use_utc,
        encoding="utf-8",
    )
    handler.suffix = ROTATED_SUFFIX
    handler.namer = rotated_log_namer(log_file_prefix)
    return handler


def setup_logging(
    log_file_prefix: str = "hl_pnl",
    log_dir: str | Path = "data",
    backup_count: int = 30,
    log_level: int | str = logging.INFO,
    use_utc: bool = True,
    console: bool = False,
) -> logging.Logger:
    """
    替换 root logger 的 handler: 按天滚动的文件, 可选 stderr

    Args:
        log_file_prefix: 当前日志为 {prefix}.log, 滚动后为 {prefix}_YYYY_MM_DD.log
        log_dir: 日志目录, 不存在时创建
        backup_count: 保留天数
        log_level: 级别, 数字或名称 ("INFO")
        use_utc: 按 UTC 午夜滚动
        console: 同时输出到 stderr

    Returns:
        本模块的 logger
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = [
        _daily_file_handler(directory / f"{log_file_prefix}.log", log_file_prefix, backup_count, use_utc)
    ]
    if console:
        handlers.append(logging.StreamHandler())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    return logging.getLogger(__name__)
