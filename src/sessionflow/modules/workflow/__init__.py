"""
认证流程引擎：步骤/动作状态机、重试、时间预算与审计
"""
from .models import (
    Action,
    ActivateWindowParams,
    CaptureEvidenceParams,
    ClickParams,
    GenerateOneTimeCodeParams,
    LocateTextParams,
    Step,
    TypeParams,
    VerifyParams,
    WaitParams,
)
from .store import StepDataStore
from .retry import AttemptOutcome, RetryPolicy, RunDeadline
from .audit import AuditEvent, AuditLog
from .evidence import EvidenceStore
from .actions import ActionExecutor
from .steps import StepExecutor
from .orchestrator import RunReport, WorkflowOrchestrator
from .plan import ParameterSource, build_default_plan
from .plan_loader import PlanLoader
from .session import SessionRunner, create_desktop_runner, new_session_id

__all__ = [
    "Action",
    "ActivateWindowParams",
    "CaptureEvidenceParams",
    "ClickParams",
    "GenerateOneTimeCodeParams",
    "LocateTextParams",
    "Step",
    "TypeParams",
    "VerifyParams",
    "WaitParams",
    "StepDataStore",
    "AttemptOutcome",
    "RetryPolicy",
    "RunDeadline",
    "AuditEvent",
    "AuditLog",
    "EvidenceStore",
    "ActionExecutor",
    "StepExecutor",
    "RunReport",
    "WorkflowOrchestrator",
    "ParameterSource",
    "build_default_plan",
    "PlanLoader",
    "SessionRunner",
    "create_desktop_runner",
    "new_session_id",
]
