"""核心 OCR 识别函数。"""
from __future__ import annotations

from typing import List, Optional, Tuple

from ...core.errors import RecognitionError
from ..vision.utils import ImageLike, load_image, to_bgr
from .engine import get_ocr_engine
from .types import OcrBox, OcrResult

# ROI 类型：(x, y, w, h)
Roi = Tuple[int, int, int, int]


def ocr(
    image: ImageLike,
    *,
    roi: Optional[Roi] = None,
    min_confidence: float = 0.5,
) -> OcrResult:
    """对图像执行 OCR 识别。

    Args:
        image: 图像来源（路径 / bytes / np.ndarray）
        roi: 可选区域 (x, y, w, h)，仅识别该区域内的文字
        min_confidence: 最低置信度阈值，低于此值的结果将被过滤

    Returns:
        OcrResult，包含所有识别结果（坐标为整屏坐标）
    """
    engine = get_ocr_engine()
    img = to_bgr(load_image(image))

    # ROI 裁剪
    offset_x, offset_y = 0, 0
    if roi:
        x, y, w, h = roi
        img = img[y : y + h, x : x + w]
        offset_x, offset_y = x, y

    # PaddleOCR 3.x: predict() 接受 BGR ndarray，返回 OCRResult 列表
    try:
        results = engine.predict(img)
    except Exception as e:
        raise RecognitionError(f"OCR 推理失败: {e}") from e

    boxes: List[OcrBox] = []
    if results:
        result = results[0]
        rec_texts = result["rec_texts"]
        rec_scores = result["rec_scores"]
        rec_polys = result["rec_polys"]
        for text, confidence, poly in zip(rec_texts, rec_scores, rec_polys):
            if confidence < min_confidence:
                continue
            # 坐标偏移还原为整屏坐标
            adjusted_box = [
                (int(p[0] + offset_x), int(p[1] + offset_y))
                for p in poly
            ]
            boxes.append(OcrBox(
                text=text,
                confidence=float(confidence),
                box=adjusted_box,
            ))

    return OcrResult(boxes=boxes)
