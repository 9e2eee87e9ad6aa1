"""
窗口激活与确认
"""
from __future__ import annotations

from ...core.errors import ConfigurationError, WindowError
from ...core.logger import logger


class PlaceholderWindowBackend:
    """总是确认成功（无窗口管理能力的环境，如纯 VDI 客户端画面）"""

    def activate(self, title: str) -> bool:
        return True

    def is_active(self, title: str) -> bool:
        return True


class DesktopWindowBackend:
    """基于 pygetwindow 的窗口管理（Windows / macOS）"""

    def __init__(self) -> None:
        self._gw = None
        self.logger = logger.bind(module="DesktopWindowBackend")

    def _module(self):
        if self._gw is None:
            try:
                import pygetwindow as gw  # noqa: delay import，Linux 下导入即失败
            except Exception as e:
                raise WindowError(f"pygetwindow 不可用: {e}") from e
            self._gw = gw
        return self._gw

    def activate(self, title: str) -> bool:
        gw = self._module()
        windows = gw.getWindowsWithTitle(title)
        if not windows:
            self.logger.warning(f"未找到窗口: {title}")
            return False
        win = windows[0]
        try:
            if win.isMinimized:
                win.restore()
            win.activate()
        except Exception as e:
            raise WindowError(f"激活窗口失败 {title}: {e}") from e
        return True

    def is_active(self, title: str) -> bool:
        gw = self._module()
        active = gw.getActiveWindow()
        if active is None:
            return False
        return title.casefold() in (active.title or "").casefold()


def create_window_backend(kind: str):
    """按配置名创建窗口后端"""
    if kind == "placeholder":
        return PlaceholderWindowBackend()
    if kind == "desktop":
        return DesktopWindowBackend()
    raise ConfigurationError("未知窗口后端：%s" % kind)
