"""
时间工具模块

引擎内所有计时、等待都经过 Clock，测试时可替换为假时钟。
"""
import time
from datetime import datetime, timedelta
from typing import Optional

import pytz


def get_timezone(name: str):
    """按名称获取时区，未知名称回退到 UTC"""
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


class Clock:
    """真实时钟"""

    def __init__(self, timezone: str = "UTC") -> None:
        self.tz = get_timezone(timezone)

    def monotonic(self) -> float:
        """单调时间（秒），用于计算耗时和缓存有效期"""
        return time.monotonic()

    def time(self) -> float:
        """墙上时间（Unix 秒），用于 TOTP"""
        return time.time()

    def now(self) -> datetime:
        """带时区的当前时间，用于时间戳"""
        return datetime.now(self.tz)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


def elapsed_ms(start: Optional[datetime], end: Optional[datetime]) -> float:
    """两个时间戳之间的毫秒数；任一为空时返回 0"""
    if start is None or end is None:
        return 0.0
    return (end - start) / timedelta(milliseconds=1)


def format_timestamp(dt: datetime) -> str:
    """格式化为日志时间戳（毫秒精度）"""
    return dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def file_stamp(dt: datetime, *, millis: bool = False) -> str:
    """格式化为文件名时间戳"""
    stamp = dt.strftime("%Y%m%d_%H%M%S")
    if millis:
        stamp += f"_{dt.microsecond // 1000:03d}"
    return stamp
