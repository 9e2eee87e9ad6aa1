"""OCR 识别结果数据结构。"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


def normalize_text(text: str) -> str:
    """比较用的规范化：折叠空白并忽略大小写。"""
    return " ".join(text.split()).casefold()


@dataclass
class OcrBox:
    """单个 OCR 识别结果。"""

    text: str
    confidence: float
    # 边界框四点坐标 [(x1,y1), (x2,y2), (x3,y3), (x4,y4)]
    box: List[Tuple[int, int]]

    @property
    def center(self) -> Tuple[int, int]:
        """边界框中心点，可直接用于点击。"""
        if not self.box:
            return (0, 0)
        xs = [p[0] for p in self.box]
        ys = [p[1] for p in self.box]
        return (sum(xs) // len(xs), sum(ys) // len(ys))

    def contains(self, keyword: str) -> bool:
        return normalize_text(keyword) in normalize_text(self.text)


@dataclass
class OcrResult:
    """OCR 识别结果集合。"""

    boxes: List[OcrBox]

    @property
    def text(self) -> str:
        """所有识别文本拼接（空格分隔）。"""
        return " ".join(b.text for b in self.boxes)

    def find(self, keyword: str) -> Optional[OcrBox]:
        """查找包含关键词且置信度最高的结果。"""
        hits = self.find_all(keyword)
        if not hits:
            return None
        return max(hits, key=lambda b: b.confidence)

    def find_all(self, keyword: str) -> List[OcrBox]:
        """查找所有包含指定关键词的结果。"""
        return [b for b in self.boxes if b.contains(keyword)]
