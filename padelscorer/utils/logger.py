"""
日志配置
命令行启动时配置一次根日志器；各模块通过 get_logger(__name__) 获取日志器并交给根日志器输出
"""
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = Path(os.getenv("PADELSCORER_LOG_DIR", str(PROJECT_ROOT / "logs")))

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_PREFIX = 'padelscorer'

_log_configured = False


def resolve_level(level: str) -> int:
    """日志级别名称转为数值，未知名称按 INFO 处理"""
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def daily_log_file_name() -> str:
    return f"{LOG_FILE_PREFIX}_{time.strftime('%Y_%m_%d', time.localtime())}.log"


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)


def setup_logger(
    name: Optional[str] = None,
    level: str = 'INFO',
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_file_name: Optional[str] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """给日志器挂上控制台和按天滚动的文件输出；已有处理器时原样返回"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_level = resolve_level(level)
    logger.setLevel(log_level)

    if log_to_console:
        _attach(logger, logging.StreamHandler(sys.stdout), log_level)

    if log_to_file:
        target_dir = Path(log_dir) if log_dir else LOGS_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path = target_dir / (log_file_name or daily_log_file_name())
        _attach(logger, logging.FileHandler(file_path, encoding='utf-8', mode='a'), log_level)

    if name:
        logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """模块日志器不挂处理器，由根日志器统一输出；根日志器未配置时只输出到控制台"""
    if name:
        return logging.getLogger(name)
    return setup_logger(log_to_file=False)


def configure_root_logger(
    level: str = 'INFO',
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_file_name: Optional[str] = None,
) -> None:
    """配置根日志器（进程内只生效一次），PADELSCORER_LOG_LEVEL 优先于传入的级别"""
    global _log_configured

    if _log_configured:
        return

    setup_logger(
        name=None,
        level=os.getenv('PADELSCORER_LOG_LEVEL', level),
        log_to_file=log_to_file,
        log_to_console=log_to_console,
        log_file_name=log_file_name,
    )
    _log_configured = True
