"""
会话运行器：组装一次完整的认证运行

负责创建运行 ID、审计日志、截图证据、识别缓存和各级执行器，
运行结束后无论成败都释放缓存帧并关闭审计 sink。
"""
from __future__ import annotations

import uuid
from pathlib import Path
from typing import List, Optional, Union

from ...core.config import Settings
from ...core.constants import EventKind
from ...core.logger import logger
from ...core.timeutils import Clock
from ..input.base import InputBackend, WindowBackend
from ..recognition.resolver import TextLocationResolver
from ..recognition.types import RecognitionBackend
from .actions import ActionExecutor
from .audit import AuditLog
from .evidence import EvidenceStore
from .models import Step
from .orchestrator import RunReport, WorkflowOrchestrator
from .plan import ParameterSource, build_default_plan
from .plan_loader import PlanLoader
from .retry import RetryPolicy
from .steps import StepExecutor
from .store import StepDataStore


def new_session_id() -> str:
    """8 位十六进制运行 ID"""
    return uuid.uuid4().hex[:8]


class SessionRunner:
    """一次运行一个实例"""

    def __init__(
        self,
        settings: Settings,
        backend: RecognitionBackend,
        input_backend: InputBackend,
        window_backend: WindowBackend,
        *,
        clock: Optional[Clock] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.settings = settings
        self.backend = backend
        self.input = input_backend
        self.window = window_backend
        self.clock = clock or Clock(settings.timezone)
        self.session_id = session_id or new_session_id()
        self.audit: Optional[AuditLog] = None
        self.log = logger.bind(module="SessionRunner", run_id=self.session_id)

    @property
    def output_root(self) -> Path:
        return Path(self.settings.output_root)

    def build_plan(self, plan_path: Optional[Union[str, Path]] = None) -> List[Step]:
        params = ParameterSource.from_settings(self.settings)
        path = plan_path or self.settings.plan_path
        if path:
            loader = PlanLoader(params, default_max_retries=self.settings.action_max_retries)
            return loader.load(path)
        return build_default_plan(
            params,
            max_retries=self.settings.action_max_retries,
            min_confidence=self.settings.ocr_min_confidence,
            totp_digits=self.settings.totp_digits,
            totp_interval=self.settings.totp_interval,
        )

    def run(
        self,
        steps: Optional[List[Step]] = None,
        plan_path: Optional[Union[str, Path]] = None,
    ) -> RunReport:
        """执行一次运行。

        Raises:
            AuditSinkError: 审计日志无法初始化
            EvidenceError: 截图目录无法创建
            PlanError: 流程定义错误
        """
        s = self.settings
        # 审计日志失败即整体失败，此时还没有可写的事件流
        self.audit = AuditLog(
            self.session_id, self.output_root / s.log_dir_name, clock=self.clock
        )
        resolver = TextLocationResolver(
            self.backend,
            clock=self.clock,
            cache_ttl_ms=s.screenshot_cache_ttl_ms,
            min_confidence=s.ocr_min_confidence,
        )
        try:
            evidence = EvidenceStore(
                self.output_root / s.evidence_dir_name,
                self.session_id,
                self.backend.capture,
                clock=self.clock,
            )
            plan = steps if steps is not None else self.build_plan(plan_path)

            action_executor = ActionExecutor(
                resolver,
                self.input,
                self.window,
                self.audit,
                evidence=evidence,
                retry_policy=RetryPolicy(s.retry_backoff_sec, clock=self.clock),
                clock=self.clock,
                evidence_on_visual_actions=s.evidence_on_visual_actions,
            )
            orchestrator = WorkflowOrchestrator(
                self.session_id,
                StepExecutor(action_executor, self.audit, clock=self.clock),
                self.audit,
                budget_sec=s.run_budget_sec,
                clock=self.clock,
                store=StepDataStore(),
            )
            orchestrator.add_steps(plan)
            report = orchestrator.run()
        except Exception as e:
            self.audit.emit(EventKind.WORKFLOW_ERROR, error=str(e) or type(e).__name__)
            raise
        finally:
            resolver.close()
            self.audit.close()

        self.log.info(
            f"运行结束: {report.completed}/{report.total} 个步骤完成"
            + (f"，终止于 {report.aborted_step_id}" if report.aborted_step_id else "")
        )
        return report


def create_desktop_runner(settings: Settings, *, session_id: Optional[str] = None) -> SessionRunner:
    """用真实截图、OCR 和键鼠后端创建运行器"""
    from ..capture.screen import ScreenCapture
    from ..input.desktop import DesktopInput
    from ..input.window import create_window_backend
    from ..recognition.ocr_backend import ScreenOcrBackend

    capture = ScreenCapture(monitor=settings.capture_monitor)
    if not capture.is_available():
        # 不中断：截图故障会在各次尝试中按后端故障处理
        logger.warning(f"显示器 {settings.capture_monitor} 不可用，识别类动作将失败")
    backend = ScreenOcrBackend(capture, min_confidence=settings.ocr_engine_min_confidence)
    return SessionRunner(
        settings,
        backend,
        DesktopInput(pause=settings.input_pause_sec),
        create_window_backend(settings.window_backend),
        session_id=session_id,
    )
