"""
桌面截图实现（mss）
"""
import numpy as np

from ...core.errors import CaptureError
from ...core.logger import logger
from ..vision.utils import to_bgr
from .base import BaseCapture


class ScreenCapture(BaseCapture):
    """基于 mss 的整屏截图"""

    def __init__(self, monitor: int = 1):
        self.monitor = monitor
        self._sct = None
        self.logger = logger.bind(module="ScreenCapture")

    def _session(self):
        if self._sct is None:
            try:
                import mss  # noqa: delay import
            except ImportError as e:
                raise CaptureError(f"mss 导入失败: {e}") from e
            try:
                self._sct = mss.mss()
            except Exception as e:
                raise CaptureError(f"mss 初始化失败: {e}") from e
        return self._sct

    def _capture_raw(self) -> np.ndarray:
        """
        抓取指定显示器

        Returns:
            BGR 图像

        Raises:
            CaptureError: 显示器编号无效或抓取失败
        """
        sct = self._session()
        if self.monitor >= len(sct.monitors):
            raise CaptureError(f"显示器编号无效: {self.monitor}")
        shot = sct.grab(sct.monitors[self.monitor])
        # mss 返回 BGRA
        frame = to_bgr(np.asarray(shot))
        self.logger.debug(f"截图成功，尺寸: {frame.shape[1]}x{frame.shape[0]}")
        return frame

    def is_available(self) -> bool:
        try:
            return len(self._session().monitors) > self.monitor
        except CaptureError as e:
            self.logger.error(f"截图不可用: {e}")
            return False

    def close(self) -> None:
        if self._sct is not None:
            self._sct.close()
            self._sct = None
