"""
内置认证流程与命名参数

参数缺失时取空串（并告警），流程照常构建；空凭据在对应动作执行时
以配置错误的形式失败，而不是在构建阶段中断。
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from ...core.config import Settings
from ...core.constants import ONE_TIME_CODE_PLACEHOLDER
from ...core.logger import logger
from .models import (
    Action,
    ClickParams,
    GenerateOneTimeCodeParams,
    LocateTextParams,
    Step,
    TypeParams,
    VerifyParams,
    WaitParams,
)

# 旧参数名到配置字段名
_ALIASES = {"totpSecret": "totp_secret"}


class ParameterSource:
    """命名字符串参数（凭据 + 额外参数）"""

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(values or {})

    @classmethod
    def from_settings(cls, settings: Settings) -> "ParameterSource":
        values = {
            "username": settings.username,
            "pin": settings.pin,
            "totp_secret": settings.totp_secret,
        }
        values.update(settings.params)
        return cls(values)

    def get(self, name: str) -> str:
        key = _ALIASES.get(name, name)
        value = self._values.get(key)
        if not value:
            logger.warning(f"参数未配置: {name}")
            return ""
        return value

    def __contains__(self, name: str) -> bool:
        return bool(self._values.get(_ALIASES.get(name, name)))


def build_default_plan(
    params: ParameterSource,
    *,
    max_retries: int = 3,
    min_confidence: float = 0.7,
    totp_digits: int = 6,
    totp_interval: int = 30,
) -> List[Step]:
    """构建内置的 VDI 登录流程（六个步骤）"""

    def action(action_id: str, name: str, p, optional: bool = False) -> Action:
        return Action(action_id, name, p, optional=optional, max_retries=max_retries)

    def locate(*texts: str) -> LocateTextParams:
        return LocateTextParams(texts[0], texts[1:], min_confidence=min_confidence)

    def click(text: str) -> ClickParams:
        return ClickParams(target_text=text, min_confidence=min_confidence)

    enter = ClickParams(key="ENTER")

    return [
        Step("EPA_BYPASS", "Handle Endpoint Analysis Security Check", [
            action("EPA_01", "Detect EPA Dialog",
                   locate("Endpoint Analysis", "Security Check", "EPA", "Analysis"), optional=True),
            action("EPA_02", "Click Continue Button", click("Continue")),
        ]),
        Step("USERNAME_ENTRY", "Enter Username/Email Address", [
            action("USER_01", "Detect Other User Option",
                   locate("Other user", "Username", "Email", "Sign in", "User")),
            action("USER_02", "Click Other User", click("Other user")),
            action("USER_03", "Type Username", TypeParams(params.get("username"))),
            action("USER_04", "Submit Username", enter),
        ]),
        Step("MFA_SELECTION", "Select TOTP Authentication Method", [
            action("MFA_01", "Detect Sign In Options",
                   locate("Sign in options", "Authentication", "MFA", "Verification")),
            action("MFA_02", "Click Sign In Options", click("Sign in options")),
            action("MFA_03", "Select TOTP Method", click("Use verification code from my mobile app")),
        ]),
        Step("PIN_ENTRY", "Enter User PIN", [
            action("PIN_01", "Detect PIN Field", locate("PIN", "Personal", "Code", "Password")),
            action("PIN_02", "Type PIN", TypeParams(params.get("pin"), sensitive=True)),
        ]),
        Step("TOTP_ENTRY", "Generate and Enter TOTP Code", [
            action("TOTP_01", "Generate TOTP Code", GenerateOneTimeCodeParams(
                params.get("totp_secret"), digits=totp_digits, interval=totp_interval)),
            action("TOTP_02", "Detect TOTP Field",
                   locate("Display Token", "Token", "Code", "Verification", "OTP")),
            action("TOTP_03", "Type TOTP Code", TypeParams(ONE_TIME_CODE_PLACEHOLDER, sensitive=True)),
            action("TOTP_04", "Submit TOTP", enter),
        ]),
        Step("WORKSPACE_DETECTION", "Detect and Monitor Workspace Window", [
            action("WS_01", "Wait for Workspace Load", WaitParams(10)),
            action("WS_02", "Detect Workspace Window",
                   locate("Welcome", "Desktop", "Workspace", "Apps", "Home")),
            action("WS_03", "Confirm Session Active", VerifyParams(window_title="workspace")),
        ]),
    ]
