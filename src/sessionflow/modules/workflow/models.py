"""
流程数据结构：步骤、动作以及按动作类型区分的参数记录

参数是一个封闭的联合类型，每种动作只携带自己需要的字段。结构性错误
（负数等待、置信度越界、点击同时给出文本和按键）在构建计划时抛出
PlanError；凭据缺失导致的空值保留到执行时再作为配置错误报告。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Tuple, Union

from ...core.constants import MASK, ActionKind, ActionStatus, StepStatus
from ...core.errors import PlanError

if TYPE_CHECKING:
    from .store import StepDataStore

Offset = Tuple[int, int]


def _check_confidence(value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise PlanError(f"置信度必须在 [0, 1] 内: {value}")


def _normalize(params: Any) -> None:
    alternatives = params.alternative_texts
    # 单个字符串会被拆成字符，必须显式拒绝
    if not isinstance(alternatives, (list, tuple)) or not all(isinstance(t, str) for t in alternatives):
        raise PlanError(f"alternative_texts 必须是字符串列表: {alternatives!r}")
    object.__setattr__(params, "alternative_texts", tuple(alternatives))
    offset = getattr(params, "click_offset", None)
    if offset is not None:
        if len(offset) != 2:
            raise PlanError(f"点击偏移必须是 (dx, dy): {offset}")
        object.__setattr__(params, "click_offset", (int(offset[0]), int(offset[1])))


@dataclass(frozen=True)
class LocateTextParams:
    kind: ClassVar[ActionKind] = ActionKind.LOCATE_TEXT

    expected_text: str
    alternative_texts: Tuple[str, ...] = ()
    use_cache: bool = True
    min_confidence: float = 0.7
    click_offset: Optional[Offset] = None

    def __post_init__(self) -> None:
        _normalize(self)
        _check_confidence(self.min_confidence)

    def describe(self) -> Dict[str, Any]:
        return {
            "expectedText": self.expected_text,
            "alternatives": list(self.alternative_texts),
            "useCache": self.use_cache,
        }


@dataclass(frozen=True)
class ClickParams:
    kind: ClassVar[ActionKind] = ActionKind.CLICK

    target_text: Optional[str] = None
    key: Optional[str] = None
    alternative_texts: Tuple[str, ...] = ()
    min_confidence: float = 0.7
    click_offset: Optional[Offset] = None

    def __post_init__(self) -> None:
        _normalize(self)
        if self.target_text and self.key:
            raise PlanError("点击动作不能同时指定 target_text 和 key")
        _check_confidence(self.min_confidence)

    def describe(self) -> Dict[str, Any]:
        if self.key:
            return {"key": self.key}
        return {"targetText": self.target_text}


@dataclass(frozen=True)
class TypeParams:
    kind: ClassVar[ActionKind] = ActionKind.TYPE

    text: Optional[str] = None
    sensitive: bool = False

    def describe(self) -> Dict[str, Any]:
        return {"text": MASK if self.sensitive and self.text else self.text}


@dataclass(frozen=True)
class WaitParams:
    kind: ClassVar[ActionKind] = ActionKind.WAIT

    seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if self.seconds is not None and self.seconds < 0:
            raise PlanError(f"等待时长不能为负数: {self.seconds}")

    def describe(self) -> Dict[str, Any]:
        return {"seconds": self.seconds}


@dataclass(frozen=True)
class CaptureEvidenceParams:
    kind: ClassVar[ActionKind] = ActionKind.CAPTURE_EVIDENCE

    label: Optional[str] = None

    def describe(self) -> Dict[str, Any]:
        return {"label": self.label} if self.label else {}


@dataclass(frozen=True)
class ActivateWindowParams:
    kind: ClassVar[ActionKind] = ActionKind.ACTIVATE_WINDOW

    window_title: Optional[str] = None

    def describe(self) -> Dict[str, Any]:
        return {"windowTitle": self.window_title}


@dataclass(frozen=True)
class VerifyParams:
    kind: ClassVar[ActionKind] = ActionKind.VERIFY

    window_title: Optional[str] = None
    expected_text: Optional[str] = None
    alternative_texts: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _normalize(self)

    def describe(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.window_title:
            out["windowTitle"] = self.window_title
        if self.expected_text:
            out["expectedText"] = self.expected_text
        return out


@dataclass(frozen=True)
class GenerateOneTimeCodeParams:
    kind: ClassVar[ActionKind] = ActionKind.GENERATE_ONE_TIME_CODE

    secret: Optional[str] = None
    digits: int = 6
    interval: int = 30

    def __post_init__(self) -> None:
        if self.digits < 6 or self.digits > 10:
            raise PlanError(f"验证码位数不合法: {self.digits}")
        if self.interval <= 0:
            raise PlanError(f"验证码周期不合法: {self.interval}")

    def describe(self) -> Dict[str, Any]:
        return {"secret": MASK if self.secret else self.secret}


ActionParams = Union[
    LocateTextParams,
    ClickParams,
    TypeParams,
    WaitParams,
    CaptureEvidenceParams,
    ActivateWindowParams,
    VerifyParams,
    GenerateOneTimeCodeParams,
]

PARAMS_BY_KIND = {
    p.kind: p
    for p in (
        LocateTextParams,
        ClickParams,
        TypeParams,
        WaitParams,
        CaptureEvidenceParams,
        ActivateWindowParams,
        VerifyParams,
        GenerateOneTimeCodeParams,
    )
}


def _duration(start: Optional[datetime], end: Optional[datetime]) -> timedelta:
    if start is None or end is None:
        return timedelta(0)
    return end - start


@dataclass
class Action:
    action_id: str
    name: str
    params: ActionParams
    optional: bool = False
    max_retries: int = 3
    current_retry: int = 0
    status: ActionStatus = ActionStatus.PENDING
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    result: Optional[str] = None
    screenshot_path: Optional[str] = None
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if type(self.params) not in PARAMS_BY_KIND.values():
            raise PlanError(f"动作 {self.action_id} 的参数类型未知: {type(self.params).__name__}")
        if self.max_retries < 0:
            raise PlanError(f"动作 {self.action_id} 的重试次数不能为负数")

    @property
    def kind(self) -> ActionKind:
        return self.params.kind

    @property
    def duration(self) -> timedelta:
        return _duration(self.started_at, self.ended_at)


@dataclass
class Step:
    step_id: str
    name: str
    actions: List[Action] = field(default_factory=list)
    status: StepStatus = StepStatus.PENDING
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    error_message: Optional[str] = None
    failed_action_id: Optional[str] = None
    data: Optional["StepDataStore"] = None

    def __post_init__(self) -> None:
        seen = set()
        for action in self.actions:
            if action.action_id in seen:
                raise PlanError(f"步骤 {self.step_id} 中动作 ID 重复: {action.action_id}")
            seen.add(action.action_id)

    @property
    def duration(self) -> timedelta:
        return _duration(self.started_at, self.ended_at)

    def count(self, status: ActionStatus) -> int:
        return sum(1 for a in self.actions if a.status == status)


__all__ = [
    "Action",
    "ActionParams",
    "ActivateWindowParams",
    "CaptureEvidenceParams",
    "ClickParams",
    "GenerateOneTimeCodeParams",
    "LocateTextParams",
    "PARAMS_BY_KIND",
    "Step",
    "TypeParams",
    "VerifyParams",
    "WaitParams",
]
