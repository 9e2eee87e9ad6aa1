from .types import OcrBox, OcrResult, normalize_text
from .recognize import ocr
from .engine import get_ocr_engine

__all__ = [
    "OcrBox",
    "OcrResult",
    "normalize_text",
    "ocr",
    "get_ocr_engine",
]
