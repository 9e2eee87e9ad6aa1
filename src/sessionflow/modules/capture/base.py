"""
截图基类
"""
from abc import ABC, abstractmethod

import numpy as np

from ...core.errors import CaptureError


class BaseCapture(ABC):
    """截图基类

    只负责抓取一帧；帧缓存由 TextLocationResolver 独占管理。
    """

    @abstractmethod
    def _capture_raw(self) -> np.ndarray:
        """
        原始截图实现

        Returns:
            BGR 图像

        Raises:
            CaptureError: 截图失败
        """
        pass

    def capture(self) -> np.ndarray:
        """
        截取屏幕图像

        Returns:
            BGR 图像

        Raises:
            CaptureError: 截图失败
        """
        try:
            return self._capture_raw()
        except CaptureError:
            raise
        except Exception as e:
            raise CaptureError(f"截图失败: {str(e)}") from e

    @abstractmethod
    def is_available(self) -> bool:
        """
        检查截图功能是否可用

        Returns:
            是否可用
        """
        pass

    def close(self) -> None:
        """释放截图资源"""
        pass
