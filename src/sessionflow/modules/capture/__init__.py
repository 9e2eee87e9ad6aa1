"""
截图模块
"""
from .base import BaseCapture
from .screen import ScreenCapture

__all__ = ["BaseCapture", "ScreenCapture"]
