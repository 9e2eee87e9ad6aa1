"""
步骤执行器
"""
from __future__ import annotations

from typing import Optional

from ...core.constants import ActionStatus, EventKind, StepStatus
from ...core.logger import logger
from ...core.timeutils import Clock, elapsed_ms
from .actions import ActionExecutor
from .audit import AuditLog
from .models import Step


class StepExecutor:
    """按声明顺序执行步骤内的动作

    必需动作失败立即终止步骤；可选动作失败只记录，不改变步骤走向。
    任何意外异常都转换为步骤失败，不会越过步骤边界。
    """

    def __init__(self, action_executor: ActionExecutor, audit: AuditLog, *, clock: Optional[Clock] = None) -> None:
        self.action_executor = action_executor
        self.audit = audit
        self.clock = clock or Clock()
        self.logger = logger.bind(module="StepExecutor")

    def execute(self, step: Step) -> StepStatus:
        self.audit.emit(
            EventKind.STEP_START,
            step_id=step.step_id,
            name=step.name,
            actions=len(step.actions),
        )
        step.status = StepStatus.IN_PROGRESS
        step.started_at = self.clock.now()

        try:
            for action in step.actions:
                self.action_executor.execute(action, step)
                if action.status == ActionStatus.FAILED and not action.optional:
                    step.status = StepStatus.FAILED
                    step.failed_action_id = action.action_id
                    step.error_message = f"Required action failed: {action.name} - {action.error_message}"
                    break
                if action.status == ActionStatus.FAILED:
                    self.logger.info(f"{step.step_id} | 可选动作 {action.action_id} 失败，继续执行")

            if step.status != StepStatus.FAILED:
                step.status = StepStatus.COMPLETED
        except Exception as e:
            step.status = StepStatus.FAILED
            step.error_message = str(e) or type(e).__name__
            self.audit.emit(EventKind.STEP_EXCEPTION, step_id=step.step_id, error=step.error_message)

        step.ended_at = self.clock.now()
        self.audit.emit(
            EventKind.STEP_COMPLETE,
            step_id=step.step_id,
            status=step.status.value,
            duration_ms=round(elapsed_ms(step.started_at, step.ended_at), 1),
            actions=(
                f"{step.count(ActionStatus.COMPLETED)} ok/"
                f"{step.count(ActionStatus.FAILED)} failed/{len(step.actions)}"
            ),
            error=step.error_message,
        )
        return step.status
