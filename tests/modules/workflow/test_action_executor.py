import numpy as np
import pytest

from sessionflow.core.constants import ActionStatus, EventKind, MASK, ONE_TIME_CODE_PLACEHOLDER
from sessionflow.core.errors import InputError
from sessionflow.modules.recognition.types import Point
from sessionflow.modules.workflow.actions import ActionExecutor
from sessionflow.modules.workflow.evidence import EvidenceStore
from sessionflow.modules.workflow.models import (
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
from sessionflow.modules.workflow.retry import RetryPolicy
from sessionflow.modules.workflow.store import StepDataStore, screenshot_key


def _run(executor, action, store=None):
    step = Step("STEP", "Step", [action], data=store if store is not None else StepDataStore())
    executor.execute(action, step)
    return step.data


def test_locate_writes_location_and_matched_text(action_executor, backend, clock):
    backend.show("Other user", 300, 400)
    clock.advance(0.01)
    action = Action("USER_01", "Detect", LocateTextParams("Other user", ("Username",), click_offset=(5, -5)))

    store = _run(action_executor, action)

    assert action.status == ActionStatus.COMPLETED
    assert store.get_location("USER_01_location") == Point(305, 395)
    assert store.get_text("USER_01_foundText") == "Other user"
    assert action.started_at is not None and action.ended_at is not None


def test_locate_miss_lists_expected_and_alternatives(action_executor, clock):
    action = Action("MFA_01", "Detect", LocateTextParams("Sign in options", ("Authentication", "MFA")))

    _run(action_executor, action)

    assert action.status == ActionStatus.FAILED
    assert action.current_retry == 3
    assert clock.sleeps == [1.0, 1.0, 1.0]
    assert action.error_message == (
        "Text not found. Searched for: Sign in options, Alternatives: Authentication, MFA"
    )


def test_click_uses_fresh_frame_and_offset(action_executor, backend, recorder):
    backend.show("Continue", 50, 60)
    action = Action("EPA_02", "Click", ClickParams(target_text="Continue", click_offset=(1, 2)))

    store = _run(action_executor, action)

    assert recorder.events == [("click", Point(51, 62))]
    assert store.get_location("EPA_02_location") == Point(51, 62)
    # 一次性帧用后即释放
    assert backend.released == [1]


def test_click_miss_falls_back_to_keyboard(action_executor, recorder):
    action = Action("MFA_03", "Select", ClickParams(target_text="Use verification code"))

    _run(action_executor, action)

    assert action.status == ActionStatus.COMPLETED
    assert recorder.events == [("key", "tab"), ("key", "enter")]
    assert "keyboard navigation fallback" in action.result


def test_click_key_and_missing_target(action_executor, recorder, clock):
    press = Action("USER_04", "Submit", ClickParams(key="ENTER"))
    _run(action_executor, press)
    assert recorder.events == [("key", "ENTER")]
    assert press.status == ActionStatus.COMPLETED

    empty = Action("X_01", "Nothing", ClickParams(), max_retries=1)
    _run(action_executor, empty)
    assert empty.status == ActionStatus.FAILED
    assert empty.error_message == "No target specified for click action"


def test_type_replaces_placeholder_with_generated_code(action_executor, recorder, clock):
    store = StepDataStore()
    generate = Action("TOTP_01", "Generate", GenerateOneTimeCodeParams("ABC123"))
    type_code = Action("TOTP_03", "Type", TypeParams(ONE_TIME_CODE_PLACEHOLDER, sensitive=True))

    _run(action_executor, generate, store)
    _run(action_executor, type_code, store)

    code = store.get_one_time_code()
    assert code is not None and len(code) == 6 and code.isdigit()
    assert recorder.events == [("text", code)]
    assert code not in type_code.result
    assert MASK in type_code.result


def test_type_placeholder_without_code_fails(action_executor, recorder):
    action = Action("TOTP_03", "Type", TypeParams(ONE_TIME_CODE_PLACEHOLDER), max_retries=0)

    _run(action_executor, action)

    assert action.status == ActionStatus.FAILED
    assert recorder.events == []


def test_type_empty_text_is_configuration_error(action_executor):
    action = Action("USER_03", "Type", TypeParams(""), max_retries=0)
    _run(action_executor, action)
    assert action.error_message == "No text specified for type action"


def test_sensitive_text_is_masked_in_audit(action_executor, audit):
    action = Action("PIN_02", "Type PIN", TypeParams("246810", sensitive=True))
    _run(action_executor, action)

    lines = [e.line() for e in audit.events]
    assert all("246810" not in line for line in lines)
    assert action.result == f"Typed text: {MASK}"


def test_input_fault_is_retried(action_executor, recorder, clock):
    recorder.error = InputError("no display")
    action = Action("USER_03", "Type", TypeParams("alice"), max_retries=1)

    _run(action_executor, action)

    assert action.status == ActionStatus.FAILED
    assert action.error_message == "type execution failed: no display"
    assert clock.sleeps == [1.0]


def test_wait_sleeps_on_clock(action_executor, clock):
    action = Action("WS_01", "Wait", WaitParams(10))
    _run(action_executor, action)
    assert clock.sleeps == [10]
    assert action.duration.total_seconds() == pytest.approx(10.0)


def test_generate_without_secret_exhausts_retries(action_executor, clock):
    action = Action("TOTP_01", "Generate", GenerateOneTimeCodeParams(""))
    _run(action_executor, action)
    assert action.status == ActionStatus.FAILED
    assert action.error_message == "No TOTP secret specified"
    assert len(clock.sleeps) == 3


def test_window_actions_report_negative_answers(action_executor, window):
    activate = Action("W_01", "Activate", ActivateWindowParams("Citrix"))
    _run(action_executor, activate)
    assert activate.status == ActionStatus.COMPLETED
    assert window.activated == ["Citrix"]

    verify = Action("WS_03", "Confirm", VerifyParams(window_title="Remote Desktop"), max_retries=0)
    _run(action_executor, verify)
    assert verify.status == ActionStatus.FAILED
    assert "Remote Desktop" in verify.error_message


def test_verify_expected_text(action_executor, backend):
    backend.show("Apps")
    action = Action("WS_04", "Verify", VerifyParams(expected_text="Welcome", alternative_texts=("Apps",)))
    _run(action_executor, action)
    assert action.status == ActionStatus.COMPLETED
    assert "Apps" in action.result


def test_audit_events_bracket_each_action(action_executor, audit, backend):
    backend.show("PIN")
    action = Action("PIN_01", "Detect", LocateTextParams("PIN"))
    _run(action_executor, action)

    kinds = [e.kind for e in audit.events]
    assert kinds == [EventKind.ACTION_START, EventKind.ACTION_COMPLETE]
    assert audit.events[1].fields["status"] == "completed"


def test_evidence_captured_before_visual_actions(tmp_path, resolver, recorder, window, audit, backend, clock):
    evidence = EvidenceStore(tmp_path, audit.run_id, backend.capture, clock=clock)
    executor = ActionExecutor(
        resolver, recorder, window, audit,
        evidence=evidence, retry_policy=RetryPolicy(1.0, clock=clock), clock=clock,
    )
    backend.show("Welcome")

    locate = Action("WS_02", "Detect", LocateTextParams("Welcome"))
    _run(executor, locate)
    shot = Action("WS_05", "Shot", CaptureEvidenceParams("final"))
    store = _run(executor, shot)

    assert locate.screenshot_path.endswith("_STEP_WS_02.png")
    assert shot.screenshot_path.endswith("_final.png")
    assert store.get_text(screenshot_key("WS_05")) == shot.screenshot_path
    assert len(list((tmp_path / audit.run_id).glob("*.png"))) == 3
    assert len(audit.of_kind(EventKind.SCREENSHOT)) == 2


def test_evidence_failure_does_not_fail_action(tmp_path, resolver, recorder, window, audit, backend, clock):
    def broken():
        raise OSError("disk full")

    evidence = EvidenceStore(tmp_path, audit.run_id, broken, clock=clock)
    executor = ActionExecutor(resolver, recorder, window, audit, evidence=evidence, clock=clock)
    backend.show("Continue")

    action = Action("EPA_02", "Click", ClickParams(target_text="Continue"))
    _run(executor, action)

    assert action.status == ActionStatus.COMPLETED
    assert len(audit.of_kind(EventKind.SCREENSHOT_ERROR)) == 1
    assert action.screenshot_path is None


def test_capture_evidence_without_store_fails(action_executor):
    action = Action("X_02", "Shot", CaptureEvidenceParams(), max_retries=0)
    _run(action_executor, action)
    assert action.status == ActionStatus.FAILED
    assert action.error_message == "No evidence store configured"
