from __future__ import annotations

import time


def is_cache_fresh(timestamp: float, ttl_ms: int, *, now: float | None = None) -> bool:
    """判断缓存时间戳是否仍在有效期内。"""
    if ttl_ms <= 0:
        return False
    current = time.monotonic() if now is None else now
    return (current - timestamp) * 1000.0 <= float(ttl_ms)
