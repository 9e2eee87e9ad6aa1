from .utils import (
    ImageLike,
    load_image,
    to_bgr,
)
from .frame_cache import is_cache_fresh

__all__ = [
    "ImageLike",
    "load_image",
    "to_bgr",
    "is_cache_fresh",
]
