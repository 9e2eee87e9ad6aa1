"""
日志配置模块
"""
import sys
from pathlib import Path
from typing import Tuple

from loguru import logger

from .config import settings

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

_configured = False


def _console_stream():
    """返回可用的控制台输出流，无控制台（如 pythonw）时返回 None。"""
    for stream in (sys.stdout, sys.stderr, sys.__stdout__, sys.__stderr__):
        if stream is not None:
            return stream
    return None


def setup_logger(force: bool = False):
    """配置日志系统

    只配置控制台输出和可选的全局文件输出。运行级别的审计日志由
    ``get_session_logger`` 按运行 ID 单独挂载，目录必须显式传入。
    """
    global _configured
    if _configured and not force:
        return logger

    # 移除默认处理器
    logger.remove()

    # 控制台输出
    degraded = False
    if settings.log_console_enabled:
        stream = _console_stream()
        if stream is not None:
            logger.add(stream, level=settings.log_level, format=_CONSOLE_FORMAT)
        else:
            degraded = True

    # 文件输出 - 全局日志
    if settings.log_global_file_enabled:
        log_dir = Path(settings.output_root) / settings.log_dir_name
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "app_{time:YYYY-MM-DD}.log",
            level=settings.log_level,
            format=_FILE_FORMAT,
            rotation="00:00",  # 每天午夜轮转
            retention=f"{settings.log_retention_days} days",
            encoding="utf-8",
        )

    if degraded:
        logger.warning("未检测到可用控制台输出流，控制台日志已禁用")

    _configured = True
    return logger


def get_session_logger(run_id: str, log_dir: Path, file_stamp: str) -> Tuple[object, int]:
    """获取运行专用日志器

    挂载一个只接收本次运行事件的 JSON 文件 sink。

    Returns:
        (绑定了 run_id 的日志器, sink id)，sink id 用于运行结束时移除。
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    session_logger = logger.bind(run_id=run_id)
    sink_id = logger.add(
        log_dir / f"session_{run_id}_{file_stamp}.log",
        level="DEBUG",
        format="{message}",
        encoding="utf-8",
        serialize=True,  # JSON格式
        filter=lambda record: record["extra"].get("run_id") == run_id,
    )
    return session_logger, sink_id


# 初始化日志系统
logger = setup_logger()
