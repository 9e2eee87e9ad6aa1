"""
Recognition types and the backend protocol used by the resolver.

Any backend honoring ``RecognitionBackend`` can drive the engine: the
PaddleOCR screen backend in production, a deterministic double in tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def offset(self, delta: Optional[Tuple[int, int]]) -> "Point":
        if not delta:
            return self
        return Point(self.x + int(delta[0]), self.y + int(delta[1]))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass
class RecognitionMatch:
    found: bool
    matched_text: Optional[str] = None
    location: Optional[Point] = None
    confidence: float = 0.0


@dataclass
class TextLocation:
    """Outcome of one ``locate`` query. A miss is a value, not an error."""

    found: bool
    matched_text: Optional[str] = None
    location: Optional[Point] = None
    confidence: float = 0.0
    error: Optional[str] = None
    searched: Tuple[str, ...] = field(default_factory=tuple)
    frame_reused: bool = False


class RecognitionBackend(Protocol):
    def capture(self) -> Any:
        """Grab one frame of the remote session."""
        ...

    def recognize(self, frame: Any, candidates: Sequence[str]) -> RecognitionMatch:
        """Look for any of ``candidates`` in ``frame``."""
        ...

    def release(self, frame: Any) -> None:
        """Free whatever the frame holds once the resolver drops it."""
        ...


__all__ = ["Point", "RecognitionMatch", "TextLocation", "RecognitionBackend"]
