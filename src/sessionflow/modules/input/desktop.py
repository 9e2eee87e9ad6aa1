"""
桌面键鼠输入实现（pyautogui）
"""
from __future__ import annotations

from ...core.errors import InputError
from ...core.logger import logger
from ..recognition.types import Point


class DesktopInput:
    """通过 pyautogui 向本机会话注入点击、按键和文本"""

    def __init__(self, pause: float = 0.1, typing_interval: float = 0.02) -> None:
        self.pause = pause
        self.typing_interval = typing_interval
        self._gui = None
        self.logger = logger.bind(module="DesktopInput")

    def _pyautogui(self):
        if self._gui is None:
            try:
                import pyautogui  # noqa: delay import，无显示环境时导入即失败
            except Exception as e:
                raise InputError(f"pyautogui 不可用: {e}") from e
            pyautogui.FAILSAFE = True
            pyautogui.PAUSE = self.pause
            self._gui = pyautogui
        return self._gui

    def click_at(self, location: Point) -> None:
        gui = self._pyautogui()
        try:
            gui.click(location.x, location.y)
        except Exception as e:
            raise InputError(f"点击失败 {location}: {e}") from e
        self.logger.debug(f"点击 {location}")

    def press_key(self, name: str) -> None:
        gui = self._pyautogui()
        key = name.strip().lower()
        if key not in gui.KEYBOARD_KEYS:
            raise InputError(f"未知按键: {name}")
        try:
            gui.press(key)
        except Exception as e:
            raise InputError(f"按键失败 {name}: {e}") from e
        self.logger.debug(f"按键 {key}")

    def send_text(self, text: str) -> None:
        gui = self._pyautogui()
        try:
            gui.write(text, interval=self.typing_interval)
        except Exception as e:
            raise InputError(f"输入文本失败: {e}") from e
        self.logger.debug(f"输入文本 {len(text)} 个字符")
