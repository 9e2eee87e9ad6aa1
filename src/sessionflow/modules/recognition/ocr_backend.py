"""
屏幕 OCR 识别后端：mss 截图 + PaddleOCR 识别
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from ...core.errors import RecognitionError
from ...core.logger import logger
from ..capture.base import BaseCapture
from ..ocr.recognize import ocr
from ..ocr.types import OcrResult
from .types import Point, RecognitionMatch


class ScreenOcrBackend:
    """截图 + OCR 的识别后端

    同一帧只做一次 OCR：记住最近一次识别的帧对象及其结果，
    解析器按候选文本逐个查询时不会重复推理。只按对象身份复用，
    新截取的帧即使画面相近也会重新识别。
    """

    def __init__(self, capture: BaseCapture, *, min_confidence: float = 0.5) -> None:
        self._capture = capture
        self.min_confidence = min_confidence
        self._last_frame: Optional[np.ndarray] = None
        self._last_result: Optional[OcrResult] = None
        self.logger = logger.bind(module="ScreenOcrBackend")

    def capture(self) -> np.ndarray:
        return self._capture.capture()

    def _ocr_frame(self, frame: np.ndarray) -> OcrResult:
        if frame is self._last_frame and self._last_result is not None:
            return self._last_result
        result = ocr(frame, min_confidence=self.min_confidence)
        self._last_frame = frame
        self._last_result = result
        self.logger.debug(f"OCR 完成: {len(result.boxes)} 个文本框")
        return result

    def recognize(self, frame: np.ndarray, candidates: Sequence[str]) -> RecognitionMatch:
        if frame is None:
            raise RecognitionError("没有可识别的画面")
        result = self._ocr_frame(frame)
        for candidate in candidates:
            box = result.find(candidate)
            if box is not None:
                cx, cy = box.center
                return RecognitionMatch(
                    found=True,
                    matched_text=candidate,
                    location=Point(cx, cy),
                    confidence=box.confidence,
                )
        return RecognitionMatch(found=False)

    def release(self, frame: np.ndarray) -> None:
        # ndarray 由 GC 回收；同时丢弃与之对应的 OCR 记忆
        if frame is not None and frame is self._last_frame:
            self._last_frame = None
            self._last_result = None

    def close(self) -> None:
        self._last_frame = None
        self._last_result = None
        self._capture.close()
