from datetime import datetime
from typing import Dict, List, Tuple
from uuid import uuid4

import numpy as np
import pytest
import pytz

from sessionflow.modules.recognition.types import Point, RecognitionMatch


class FakeClock:
    """单调时间只在 sleep/advance 时前进"""

    def __init__(self, wall_start: float = 1_700_000_000.0) -> None:
        self._mono = 0.0
        self._wall_start = wall_start
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self._mono

    def time(self) -> float:
        return self._wall_start + self._mono

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.time(), tz=pytz.UTC)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self._mono += seconds


class FakeRecognitionBackend:
    """按脚本回答的识别后端

    每次 capture 对当前 ``screen`` 拍一份快照，识别只看快照，
    所以缓存帧不会看到之后画面的变化。
    """

    def __init__(self) -> None:
        self.screen: Dict[str, Tuple[int, int, float]] = {}
        self.captures = 0
        self.released: List[int] = []
        self.recognize_calls: List[Tuple[int, Tuple[str, ...]]] = []
        self.capture_error = None
        self._frames: List[Tuple[np.ndarray, int, Dict[str, Tuple[int, int, float]]]] = []

    def show(self, text: str, x: int = 100, y: int = 200, confidence: float = 0.95) -> None:
        self.screen[text] = (x, y, confidence)

    def hide(self, text: str) -> None:
        self.screen.pop(text, None)

    def capture(self) -> np.ndarray:
        if self.capture_error is not None:
            raise self.capture_error
        self.captures += 1
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        self._frames.append((frame, self.captures, dict(self.screen)))
        return frame

    def _lookup(self, frame):
        for f, number, screen in self._frames:
            if f is frame:
                return number, screen
        raise AssertionError("unknown frame")

    def recognize(self, frame, candidates) -> RecognitionMatch:
        number, screen = self._lookup(frame)
        self.recognize_calls.append((number, tuple(candidates)))
        for candidate in candidates:
            hit = screen.get(candidate)
            if hit is not None:
                x, y, confidence = hit
                return RecognitionMatch(True, candidate, Point(x, y), confidence)
        return RecognitionMatch(False)

    def release(self, frame) -> None:
        number, _ = self._lookup(frame)
        self.released.append(number)


class RecordingInput:
    def __init__(self) -> None:
        self.events: List[Tuple[str, object]] = []
        self.error = None

    def _record(self, kind: str, value) -> None:
        if self.error is not None:
            raise self.error
        self.events.append((kind, value))

    def click_at(self, location: Point) -> None:
        self._record("click", location)

    def press_key(self, name: str) -> None:
        self._record("key", name)

    def send_text(self, text: str) -> None:
        self._record("text", text)


class FakeWindow:
    def __init__(self, active_title: str = "") -> None:
        self.active_title = active_title
        self.activated: List[str] = []

    def activate(self, title: str) -> bool:
        self.activated.append(title)
        if title.casefold() in self.active_title.casefold():
            return True
        return False

    def is_active(self, title: str) -> bool:
        return title.casefold() in self.active_title.casefold()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def backend():
    return FakeRecognitionBackend()


@pytest.fixture()
def recorder():
    return RecordingInput()


@pytest.fixture()
def window():
    return FakeWindow("Citrix Workspace")


@pytest.fixture()
def run_id():
    return uuid4().hex[:8]


@pytest.fixture()
def audit(run_id, clock):
    from sessionflow.modules.workflow.audit import AuditLog

    log = AuditLog(run_id, clock=clock)
    try:
        yield log
    finally:
        log.close()


@pytest.fixture()
def resolver(backend, clock):
    from sessionflow.modules.recognition.resolver import TextLocationResolver

    return TextLocationResolver(backend, clock=clock, cache_ttl_ms=2000, min_confidence=0.7)


@pytest.fixture()
def action_executor(resolver, recorder, window, audit, clock):
    from sessionflow.modules.workflow.actions import ActionExecutor
    from sessionflow.modules.workflow.retry import RetryPolicy

    return ActionExecutor(
        resolver,
        recorder,
        window,
        audit,
        retry_policy=RetryPolicy(1.0, clock=clock),
        clock=clock,
    )
