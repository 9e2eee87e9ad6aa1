"""
流程编排器

按顺序执行步骤，整次运行共享一个时间预算。预算只在步骤边界检查：
超出预算的步骤被跳过（不算失败），后续步骤继续按同一预算判断；
进行中的动作不会被中途取消。任一步骤失败即终止运行，其余步骤
保持 Pending。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...core.constants import EventKind, StepStatus
from ...core.errors import PlanError
from ...core.timeutils import Clock
from .audit import AuditLog
from .models import Step
from .retry import RunDeadline
from .steps import StepExecutor
from .store import StepDataStore

SKIP_MESSAGE = "Workflow timeout approaching - step skipped"


@dataclass
class RunReport:
    run_id: str
    duration_ms: float
    total: int
    completed: int
    statuses: Dict[str, StepStatus] = field(default_factory=dict)
    aborted_step_id: Optional[str] = None
    aborted_action_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.total > 0 and self.completed == self.total

    @property
    def skipped(self) -> List[str]:
        return [sid for sid, s in self.statuses.items() if s == StepStatus.SKIPPED]


class WorkflowOrchestrator:
    """单次运行的步骤编排"""

    def __init__(
        self,
        run_id: str,
        step_executor: StepExecutor,
        audit: AuditLog,
        *,
        budget_sec: float = 170.0,
        clock: Optional[Clock] = None,
        store: Optional[StepDataStore] = None,
    ) -> None:
        self.run_id = run_id
        self.step_executor = step_executor
        self.audit = audit
        self.clock = clock or Clock()
        self.budget_sec = budget_sec
        self.store = store if store is not None else StepDataStore()
        self.steps: List[Step] = []
        self.audit.emit(EventKind.WORKFLOW_INIT, session_id=run_id)

    def add_step(self, step: Step) -> None:
        if any(s.step_id == step.step_id for s in self.steps):
            raise PlanError(f"步骤 ID 重复: {step.step_id}")
        step.data = self.store
        self.steps.append(step)
        self.audit.emit(
            EventKind.STEP_ADDED,
            step_id=step.step_id,
            name=step.name,
            actions=len(step.actions),
        )

    def add_steps(self, steps: List[Step]) -> None:
        for step in steps:
            self.add_step(step)

    def run(self) -> RunReport:
        deadline = RunDeadline(self.budget_sec, self.clock)
        deadline.start()
        self.audit.emit(EventKind.WORKFLOW_START, total_steps=len(self.steps), budget_s=self.budget_sec)

        aborted: Optional[Step] = None
        for step in self.steps:
            if deadline.exceeded():
                elapsed = deadline.elapsed()
                self.audit.emit(
                    EventKind.WORKFLOW_TIMEOUT_APPROACHING,
                    step_id=step.step_id,
                    elapsed_s=round(elapsed, 3),
                )
                step.status = StepStatus.SKIPPED
                step.error_message = SKIP_MESSAGE
                self.audit.emit(EventKind.STEP_SKIPPED, step_id=step.step_id, error=SKIP_MESSAGE)
                continue

            self.step_executor.execute(step)

            if step.status == StepStatus.FAILED:
                aborted = step
                self.audit.emit(
                    EventKind.WORKFLOW_FAILED,
                    failed_step=step.step_id,
                    failed_action=step.failed_action_id,
                    error=step.error_message,
                )
                break

        duration_ms = deadline.elapsed() * 1000.0
        completed = sum(1 for s in self.steps if s.status == StepStatus.COMPLETED)
        self.audit.emit(
            EventKind.WORKFLOW_COMPLETE,
            duration_ms=round(duration_ms, 1),
            completed=f"{completed}/{len(self.steps)}",
            remaining_s=round(deadline.remaining(), 3),
        )

        return RunReport(
            run_id=self.run_id,
            duration_ms=duration_ms,
            total=len(self.steps),
            completed=completed,
            statuses={s.step_id: s.status for s in self.steps},
            aborted_step_id=aborted.step_id if aborted else None,
            aborted_action_id=aborted.failed_action_id if aborted else None,
            error=aborted.error_message if aborted else None,
        )
