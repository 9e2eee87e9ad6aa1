"""
Vision utilities: frame loading/decoding and color conversion.
"""
from __future__ import annotations

import os
from typing import Union

import cv2  # type: ignore
import numpy as np


ImageLike = Union[str, bytes, np.ndarray]


def load_image(img: ImageLike) -> np.ndarray:
    """Load an image into a BGR numpy array.

    - str: treated as a file path and loaded via cv2.imread
    - bytes: decoded via cv2.imdecode
    - np.ndarray: returned as-is (assumed BGR, BGRA or single-channel)
    """
    if isinstance(img, np.ndarray):
        return img
    if isinstance(img, (bytes, bytearray)):
        arr = np.frombuffer(img, dtype=np.uint8)
        mat = cv2.imdecode(arr, cv2.IMREAD_COLOR)
        if mat is None:
            raise ValueError("Failed to decode image bytes")
        return mat
    if isinstance(img, str):
        if not os.path.isfile(img):
            raise FileNotFoundError(f"Image file not found: {img}")
        mat = cv2.imread(img, cv2.IMREAD_COLOR)
        if mat is None:
            raise ValueError(f"Failed to load image from path: {img}")
        return mat
    raise TypeError(f"Unsupported image type: {type(img)}")


def to_bgr(img: np.ndarray) -> np.ndarray:
    """Normalize a grabbed frame to 3-channel BGR.

    Screen grabbers return BGRA; OCR and PNG encoding expect BGR.
    """
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


__all__ = [
    "ImageLike",
    "load_image",
    "to_bgr",
]
