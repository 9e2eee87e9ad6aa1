"""
文字定位服务（带单槽截图缓存）

同一画面状态下的连续查询复用最近一帧截图，避免重复抓屏。
点击定位应传 use_cache=False，始终基于最新画面。
"""
from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

from ...core.logger import logger
from ...core.timeutils import Clock
from ..vision.frame_cache import is_cache_fresh
from .types import RecognitionBackend, TextLocation


class TextLocationResolver:
    """在当前画面中查找期望文本或其备选文本"""

    def __init__(
        self,
        backend: RecognitionBackend,
        *,
        clock: Optional[Clock] = None,
        cache_ttl_ms: int = 2000,
        min_confidence: float = 0.7,
    ) -> None:
        self._backend = backend
        self._clock = clock or Clock()
        self.cache_ttl_ms = cache_ttl_ms
        self.min_confidence = min_confidence
        self._cached_frame: Any = None
        self._cached_at: float = 0.0
        self.capture_count = 0
        self.logger = logger.bind(module="TextLocationResolver")

    # ── 截图缓存 ──

    def _capture(self) -> Any:
        frame = self._backend.capture()
        self.capture_count += 1
        return frame

    def _cached_screenshot(self) -> Tuple[Any, bool]:
        """返回 (帧, 是否复用缓存)。缓存过期时先释放旧帧再替换。"""
        now = self._clock.monotonic()
        if self._cached_frame is not None and is_cache_fresh(
            self._cached_at, self.cache_ttl_ms, now=now
        ):
            self.logger.debug("OCR_CACHE_HIT | 复用缓存截图")
            return self._cached_frame, True

        frame = self._capture()
        self._drop_cached()
        self._cached_frame = frame
        self._cached_at = self._clock.monotonic()
        self.logger.debug("OCR_CACHE_REFRESH | 截图缓存已刷新")
        return frame, False

    def _drop_cached(self) -> None:
        if self._cached_frame is not None:
            self._backend.release(self._cached_frame)
            self._cached_frame = None

    def invalidate(self) -> None:
        """丢弃缓存帧，下一次查询必然重新截图"""
        self._drop_cached()

    def close(self) -> None:
        self._drop_cached()

    # ── 查询 ──

    def locate(
        self,
        expected_text: str,
        alternative_texts: Sequence[str] = (),
        use_cache: bool = True,
        min_confidence: Optional[float] = None,
    ) -> TextLocation:
        """查找期望文本，未命中时按声明顺序尝试备选文本。

        Returns:
            TextLocation；全部未命中时 found=False，error 列出所有搜索过的文本。

        Raises:
            BackendError: 截图或识别后端故障
        """
        threshold = self.min_confidence if min_confidence is None else min_confidence
        candidates = tuple(t for t in (expected_text, *alternative_texts) if t)
        started = self._clock.monotonic()

        if use_cache:
            frame, reused = self._cached_screenshot()
            one_off = False
        else:
            frame, reused = self._capture(), False
            one_off = True

        try:
            result = self._match(frame, candidates, threshold)
        finally:
            if one_off:
                self._backend.release(frame)

        result.frame_reused = reused
        duration_ms = (self._clock.monotonic() - started) * 1000.0
        self.logger.debug(
            f"OCR_PERFORMANCE | Duration: {duration_ms:.0f}ms | Found: {result.found}"
            f" | Text: '{result.matched_text or ''}'"
        )
        return result

    def _match(self, frame: Any, candidates: Tuple[str, ...], threshold: float) -> TextLocation:
        for candidate in candidates:
            match = self._backend.recognize(frame, [candidate])
            if not match.found:
                continue
            if match.confidence < threshold:
                self.logger.debug(
                    f"'{candidate}' 置信度不足: {match.confidence:.3f} < {threshold:.3f}"
                )
                continue
            return TextLocation(
                found=True,
                matched_text=match.matched_text or candidate,
                location=match.location,
                confidence=match.confidence,
                searched=candidates,
            )

        return TextLocation(
            found=False,
            error=f"Text not found in screenshot. Searched for: {', '.join(candidates)}",
            searched=candidates,
        )


__all__ = ["TextLocationResolver"]
