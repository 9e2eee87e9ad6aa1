"""
重试与时间预算策略

- RetryPolicy：单个动作最多尝试 max_retries + 1 次，两次尝试之间固定等待
- RunDeadline：整次运行共享的时间预算，只在步骤边界检查
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ...core.constants import ActionStatus
from ...core.errors import ConfigurationError
from ...core.logger import logger
from ...core.timeutils import Clock
from .models import Action


@dataclass
class AttemptOutcome:
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, result: str) -> "AttemptOutcome":
        return cls(True, result=result)

    @classmethod
    def fail(cls, error: str) -> "AttemptOutcome":
        return cls(False, error=error)


class RetryPolicy:
    """固定间隔重试（不做指数退避）"""

    def __init__(self, backoff_sec: float = 1.0, clock: Optional[Clock] = None) -> None:
        self.backoff_sec = backoff_sec
        self._clock = clock or Clock()

    def run(
        self,
        action: Action,
        attempt: Callable[[], AttemptOutcome],
        *,
        on_retry: Optional[Callable[[int, int], None]] = None,
        on_attempt_failed: Optional[Callable[[int, str], None]] = None,
    ) -> bool:
        """按策略执行动作的各次尝试，直接更新动作的状态字段。

        单次尝试抛出的任何异常都记为该次失败，不会提前终止整个动作。

        Returns:
            是否有一次尝试成功
        """
        total = action.max_retries + 1
        action.current_retry = 0
        action.status = ActionStatus.IN_PROGRESS

        for index in range(total):
            if index > 0:
                action.current_retry = index
                action.status = ActionStatus.RETRYING
                if on_retry is not None:
                    on_retry(index + 1, total)
                self._clock.sleep(self.backoff_sec)
                action.status = ActionStatus.IN_PROGRESS

            try:
                outcome = attempt()
            except ConfigurationError as e:
                outcome = AttemptOutcome.fail(str(e))
            except Exception as e:
                logger.debug(f"动作 {action.action_id} 第 {index + 1} 次尝试异常: {e!r}")
                outcome = AttemptOutcome.fail(f"{action.kind.value} execution failed: {e}")

            if outcome.success:
                action.result = outcome.result
                action.error_message = None
                action.status = ActionStatus.COMPLETED
                return True

            if outcome.error:
                action.error_message = outcome.error
            if on_attempt_failed is not None:
                on_attempt_failed(index + 1, action.error_message or "")

        action.status = ActionStatus.FAILED
        if not action.error_message:
            action.error_message = f"Action failed after {total} attempts"
        return False


class RunDeadline:
    """整次运行的时间预算，从 start() 起计"""

    def __init__(self, budget_sec: float, clock: Optional[Clock] = None) -> None:
        self.budget_sec = budget_sec
        self._clock = clock or Clock()
        self._started: Optional[float] = None

    def start(self) -> None:
        self._started = self._clock.monotonic()

    def elapsed(self) -> float:
        if self._started is None:
            return 0.0
        return self._clock.monotonic() - self._started

    def exceeded(self) -> bool:
        return self.elapsed() > self.budget_sec

    def remaining(self) -> float:
        return max(0.0, self.budget_sec - self.elapsed())
