from .types import Point, RecognitionBackend, RecognitionMatch, TextLocation
from .resolver import TextLocationResolver
from .ocr_backend import ScreenOcrBackend

__all__ = [
    "Point",
    "RecognitionBackend",
    "RecognitionMatch",
    "TextLocation",
    "TextLocationResolver",
    "ScreenOcrBackend",
]
