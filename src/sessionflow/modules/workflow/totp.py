"""
基于时间的一次性验证码（RFC 6238）
"""
from __future__ import annotations

import base64
import binascii

import pyotp

from ...core.errors import ConfigurationError


def normalize_secret(secret: str) -> str:
    """把共享密钥规范化为 Base32。

    验证器应用导出的密钥通常是 Base32（可能带空格、小写、缺少填充）；
    不是合法 Base32 的密钥按原始字节处理（RFC 6238 测试向量即是如此）。
    """
    if not secret or not secret.strip():
        raise ConfigurationError("No TOTP secret specified")
    compact = "".join(secret.split()).upper().rstrip("=")
    padded = compact + "=" * (-len(compact) % 8)
    try:
        base64.b32decode(padded, casefold=False)
        return compact
    except (binascii.Error, ValueError):
        return base64.b32encode(secret.encode("utf-8")).decode("ascii").rstrip("=")


def generate_code(secret: str, *, for_time: float, digits: int = 6, interval: int = 30) -> str:
    """按给定时刻生成验证码"""
    totp = pyotp.TOTP(normalize_secret(secret), digits=digits, interval=interval)
    return totp.at(for_time)
