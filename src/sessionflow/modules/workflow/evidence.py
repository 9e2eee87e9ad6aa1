"""
截图证据存储
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import cv2
import numpy as np

from ...core.errors import CaptureError, EvidenceError
from ...core.logger import logger
from ...core.timeutils import Clock, file_stamp
from ..vision.utils import to_bgr


class EvidenceStore:
    """把截图保存为 {root}/{run_id}/{时间戳}_{标识}.png"""

    def __init__(
        self,
        root: Path,
        run_id: str,
        capture: Callable[[], np.ndarray],
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.directory = Path(root) / run_id
        self._capture = capture
        self._clock = clock or Clock()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EvidenceError(f"无法创建截图目录 {self.directory}: {e}") from e
        self.logger = logger.bind(run_id=run_id, module="EvidenceStore")

    def save(self, identifier: str) -> str:
        """截图并写盘，返回文件路径。

        Raises:
            CaptureError: 截图或写盘失败
        """
        frame = self._capture()
        if frame is None:
            raise CaptureError("截图为空")
        stamp = file_stamp(self._clock.now(), millis=True)
        path = self.directory / f"{stamp}_{_safe(identifier)}.png"
        if not cv2.imwrite(str(path), to_bgr(np.asarray(frame))):
            raise CaptureError(f"截图写入失败: {path}")
        self.logger.debug(f"截图已保存: {path}")
        return str(path)


def _safe(identifier: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in identifier) or "screenshot"
