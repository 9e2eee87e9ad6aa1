"""
常量和枚举定义
"""
from enum import Enum


class StepStatus(str, Enum):
    """步骤状态"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ActionStatus(str, Enum):
    """动作状态"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"


class ActionKind(str, Enum):
    """动作类型"""
    LOCATE_TEXT = "locate_text"
    CLICK = "click"
    TYPE = "type"
    WAIT = "wait"
    CAPTURE_EVIDENCE = "capture_evidence"
    ACTIVATE_WINDOW = "activate_window"
    VERIFY = "verify"
    GENERATE_ONE_TIME_CODE = "generate_one_time_code"


class EventKind(str, Enum):
    """审计事件类型"""
    WORKFLOW_INIT = "WORKFLOW_INIT"
    STEP_ADDED = "STEP_ADDED"
    WORKFLOW_START = "WORKFLOW_START"
    WORKFLOW_TIMEOUT_APPROACHING = "WORKFLOW_TIMEOUT_APPROACHING"
    WORKFLOW_FAILED = "WORKFLOW_FAILED"
    WORKFLOW_COMPLETE = "WORKFLOW_COMPLETE"
    WORKFLOW_ERROR = "WORKFLOW_ERROR"
    STEP_START = "STEP_START"
    STEP_COMPLETE = "STEP_COMPLETE"
    STEP_SKIPPED = "STEP_SKIPPED"
    STEP_EXCEPTION = "STEP_EXCEPTION"
    ACTION_START = "ACTION_START"
    ACTION_RETRY = "ACTION_RETRY"
    ACTION_COMPLETE = "ACTION_COMPLETE"
    SCREENSHOT = "SCREENSHOT"
    SCREENSHOT_ERROR = "SCREENSHOT_ERROR"


# 数据仓库保留键：一次性验证码
ONE_TIME_CODE_KEY = "TOTP_CODE"
# 输入动作中的验证码占位符
ONE_TIME_CODE_PLACEHOLDER = "{{TOTP_CODE}}"

# 敏感参数的脱敏显示
MASK = "****"

# 键盘导航兜底：先 TAB 聚焦再 ENTER 确认
KEYBOARD_FALLBACK_KEYS = ("tab", "enter")

# 识别类动作（开始前自动截图留证）
VISUAL_ACTION_KINDS = frozenset({
    ActionKind.LOCATE_TEXT,
    ActionKind.CLICK,
    ActionKind.CAPTURE_EVIDENCE,
})
