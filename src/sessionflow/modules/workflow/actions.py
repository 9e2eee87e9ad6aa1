"""
动作执行器

按动作类型分派单次尝试，由 RetryPolicy 负责重试节奏。每次尝试返回
AttemptOutcome；识别未命中是普通的失败结果，后端故障以异常形式抛出，
在尝试边界被 RetryPolicy 捕获并记为该次失败。
"""
from __future__ import annotations

from typing import Callable, Dict, Optional

from ...core.constants import (
    KEYBOARD_FALLBACK_KEYS,
    MASK,
    ONE_TIME_CODE_PLACEHOLDER,
    VISUAL_ACTION_KINDS,
    ActionKind,
    EventKind,
)
from ...core.errors import ConfigurationError
from ...core.logger import logger
from ...core.timeutils import Clock, elapsed_ms
from ..input.base import InputBackend, WindowBackend
from ..recognition.resolver import TextLocationResolver
from .audit import AuditLog
from .evidence import EvidenceStore
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
from .retry import AttemptOutcome, RetryPolicy
from .store import (
    LocationValue,
    MatchedTextValue,
    StepDataStore,
    TextValue,
    found_text_key,
    location_key,
    screenshot_key,
)
from .totp import generate_code


class ActionExecutor:
    """执行单个动作（含重试），记录耗时与结果"""

    def __init__(
        self,
        resolver: TextLocationResolver,
        input_backend: InputBackend,
        window_backend: WindowBackend,
        audit: AuditLog,
        *,
        evidence: Optional[EvidenceStore] = None,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Optional[Clock] = None,
        evidence_on_visual_actions: bool = True,
    ) -> None:
        self.resolver = resolver
        self.input = input_backend
        self.window = window_backend
        self.audit = audit
        self.evidence = evidence
        self.clock = clock or Clock()
        self.retry_policy = retry_policy or RetryPolicy(clock=self.clock)
        self.evidence_on_visual_actions = evidence_on_visual_actions
        self.logger = logger.bind(module="ActionExecutor")

        self._handlers: Dict[ActionKind, Callable[[Action, StepDataStore], AttemptOutcome]] = {
            ActionKind.LOCATE_TEXT: self._locate_text,
            ActionKind.CLICK: self._click,
            ActionKind.TYPE: self._type,
            ActionKind.WAIT: self._wait,
            ActionKind.CAPTURE_EVIDENCE: self._capture_evidence,
            ActionKind.ACTIVATE_WINDOW: self._activate_window,
            ActionKind.VERIFY: self._verify,
            ActionKind.GENERATE_ONE_TIME_CODE: self._generate_one_time_code,
        }

    def execute(self, action: Action, step: Step) -> bool:
        """执行动作直到成功或重试耗尽。

        Returns:
            动作是否完成
        """
        store = step.data if step.data is not None else StepDataStore()
        action.started_at = self.clock.now()
        self.audit.emit(
            EventKind.ACTION_START,
            step_id=step.step_id,
            action_id=action.action_id,
            name=action.name,
            type=action.kind.value,
            params=action.params.describe(),
        )
        if self.evidence_on_visual_actions and action.kind in VISUAL_ACTION_KINDS:
            self._capture_start_evidence(action, step)

        handler = self._handlers[action.kind]

        def on_retry(attempt: int, total: int) -> None:
            self.audit.emit(
                EventKind.ACTION_RETRY,
                step_id=step.step_id,
                action_id=action.action_id,
                attempt=f"{attempt}/{total}",
            )

        def on_attempt_failed(attempt: int, error: str) -> None:
            self.logger.debug(f"{step.step_id} | {action.action_id} | 第 {attempt} 次失败: {error}")

        success = self.retry_policy.run(
            action,
            lambda: handler(action, store),
            on_retry=on_retry,
            on_attempt_failed=on_attempt_failed,
        )

        action.ended_at = self.clock.now()
        self.audit.emit(
            EventKind.ACTION_COMPLETE,
            step_id=step.step_id,
            action_id=action.action_id,
            status=action.status.value,
            duration_ms=round(elapsed_ms(action.started_at, action.ended_at), 1),
            retries=action.current_retry or None,
            result=action.result,
            error=action.error_message,
        )
        return success

    def _capture_start_evidence(self, action: Action, step: Step) -> None:
        if self.evidence is None:
            return
        identifier = f"{step.step_id}_{action.action_id}"
        try:
            action.screenshot_path = self.evidence.save(identifier)
        except Exception as e:
            # 留证失败不影响动作本身
            self.audit.emit(
                EventKind.SCREENSHOT_ERROR,
                step_id=step.step_id,
                action_id=action.action_id,
                error=str(e),
            )
            return
        self.audit.emit(
            EventKind.SCREENSHOT,
            step_id=step.step_id,
            action_id=action.action_id,
            path=action.screenshot_path,
        )

    # ── 各类型的单次尝试 ──

    def _locate_text(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: LocateTextParams = action.params
        if not p.expected_text:
            raise ConfigurationError("No expected text specified for locate action")
        found = self.resolver.locate(
            p.expected_text,
            p.alternative_texts,
            use_cache=p.use_cache,
            min_confidence=p.min_confidence,
        )
        if not found.found:
            return AttemptOutcome.fail(
                f"Text not found. Searched for: {p.expected_text}, "
                f"Alternatives: {', '.join(p.alternative_texts)}"
            )
        point = found.location.offset(p.click_offset)
        store.put(location_key(action.action_id), LocationValue(point))
        store.put(found_text_key(action.action_id), MatchedTextValue(found.matched_text))
        return AttemptOutcome.ok(
            f"Text found: '{found.matched_text}' at {point} (confidence={found.confidence:.2f})"
        )

    def _click(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: ClickParams = action.params
        if p.target_text:
            found = self.resolver.locate(
                p.target_text,
                p.alternative_texts,
                use_cache=False,
                min_confidence=p.min_confidence,
            )
            if found.found:
                point = found.location.offset(p.click_offset)
                self.input.click_at(point)
                store.put(location_key(action.action_id), LocationValue(point))
                return AttemptOutcome.ok(f"Clicked '{found.matched_text}' at {point}")
            # 找不到目标时退回键盘导航，这一分支总是报告成功
            for key in KEYBOARD_FALLBACK_KEYS:
                self.input.press_key(key)
            return AttemptOutcome.ok("Used keyboard navigation fallback (TAB + ENTER)")
        if p.key:
            self.input.press_key(p.key)
            return AttemptOutcome.ok(f"Pressed key: {p.key}")
        raise ConfigurationError("No target specified for click action")

    def _type(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: TypeParams = action.params
        if not p.text:
            raise ConfigurationError("No text specified for type action")
        text = p.text
        masked = p.sensitive
        if text == ONE_TIME_CODE_PLACEHOLDER:
            code = store.get_one_time_code()
            if code is None:
                raise ConfigurationError("No one-time code available for placeholder")
            text = code
        self.input.send_text(text)
        shown = MASK if masked else text
        return AttemptOutcome.ok(f"Typed text: {shown}")

    def _wait(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: WaitParams = action.params
        if p.seconds is None:
            raise ConfigurationError("No duration specified for wait action")
        self.clock.sleep(p.seconds)
        return AttemptOutcome.ok(f"Waited {p.seconds:g} seconds")

    def _capture_evidence(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: CaptureEvidenceParams = action.params
        if self.evidence is None:
            raise ConfigurationError("No evidence store configured")
        path = self.evidence.save(p.label or action.action_id)
        action.screenshot_path = path
        store.put(screenshot_key(action.action_id), TextValue(path))
        return AttemptOutcome.ok(f"Screenshot saved: {path}")

    def _activate_window(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: ActivateWindowParams = action.params
        if not p.window_title:
            raise ConfigurationError("No window title specified for activation")
        if not self.window.activate(p.window_title):
            return AttemptOutcome.fail(f"Window not found or not activated: {p.window_title}")
        return AttemptOutcome.ok(f"Window activated: {p.window_title}")

    def _verify(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: VerifyParams = action.params
        if not p.window_title and not p.expected_text:
            raise ConfigurationError("Nothing to verify: no window title or expected text")
        confirmed = []
        if p.window_title:
            if not self.window.is_active(p.window_title):
                return AttemptOutcome.fail(f"Expected window is not active: {p.window_title}")
            confirmed.append(f"window '{p.window_title}'")
        if p.expected_text:
            found = self.resolver.locate(p.expected_text, p.alternative_texts, use_cache=False)
            if not found.found:
                return AttemptOutcome.fail(f"Verification text not visible: {found.error}")
            confirmed.append(f"text '{found.matched_text}'")
        return AttemptOutcome.ok(f"Verified {', '.join(confirmed)}")

    def _generate_one_time_code(self, action: Action, store: StepDataStore) -> AttemptOutcome:
        p: GenerateOneTimeCodeParams = action.params
        if not p.secret:
            raise ConfigurationError("No TOTP secret specified")
        code = generate_code(p.secret, for_time=self.clock.time(), digits=p.digits, interval=p.interval)
        store.put_one_time_code(code)
        return AttemptOutcome.ok(f"TOTP code generated ({len(code)} digits)")
