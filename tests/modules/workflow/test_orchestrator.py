import pytest

from sessionflow.core.constants import ActionStatus, EventKind, StepStatus
from sessionflow.modules.workflow.models import Action, ClickParams, LocateTextParams, Step, WaitParams
from sessionflow.modules.workflow.orchestrator import SKIP_MESSAGE, WorkflowOrchestrator
from sessionflow.modules.workflow.steps import StepExecutor


def _wait_step(step_id, seconds):
    return Step(step_id, step_id, [Action(f"{step_id}_01", "Wait", WaitParams(seconds))])


def _orchestrator(action_executor, audit, clock, run_id, budget=170.0):
    return WorkflowOrchestrator(
        run_id,
        StepExecutor(action_executor, audit, clock=clock),
        audit,
        budget_sec=budget,
        clock=clock,
    )


def test_all_steps_complete(action_executor, audit, clock, run_id, backend):
    backend.show("Other user")
    orch = _orchestrator(action_executor, audit, clock, run_id)
    orch.add_steps([
        Step("USERNAME_ENTRY", "Username", [Action("USER_01", "Detect", LocateTextParams("Other user"))]),
        _wait_step("WS", 1),
    ])

    report = orch.run()

    assert report.succeeded
    assert report.completed == report.total == 2
    assert report.aborted_step_id is None
    kinds = [e.kind for e in audit.events]
    assert kinds[0] == EventKind.WORKFLOW_INIT
    assert kinds.count(EventKind.STEP_ADDED) == 2
    assert kinds[-1] == EventKind.WORKFLOW_COMPLETE
    assert audit.events[-1].fields["completed"] == "2/2"


def test_failed_step_aborts_and_leaves_rest_pending(action_executor, audit, clock, run_id):
    orch = _orchestrator(action_executor, audit, clock, run_id)
    failing = Step("MFA_SELECTION", "MFA", [
        Action("MFA_01", "Detect", LocateTextParams("Sign in options", ("Authentication", "MFA"))),
        Action("MFA_02", "Click", ClickParams(target_text="Sign in options")),
    ])
    later = _wait_step("PIN_ENTRY", 1)
    orch.add_steps([failing, later])

    report = orch.run()

    assert not report.succeeded
    assert report.aborted_step_id == "MFA_SELECTION"
    assert report.aborted_action_id == "MFA_01"
    assert "Sign in options, Alternatives: Authentication, MFA" in report.error
    assert failing.actions[0].current_retry == 3
    assert failing.actions[1].status == ActionStatus.PENDING
    assert later.status == StepStatus.PENDING
    assert len(audit.of_kind(EventKind.WORKFLOW_FAILED)) == 1


def test_step_past_budget_is_skipped_and_next_step_still_evaluated(action_executor, audit, clock, run_id):
    orch = _orchestrator(action_executor, audit, clock, run_id, budget=170.0)
    steps = [
        _wait_step("S1", 100),
        _wait_step("S2", 60),
        _wait_step("S3", 15),   # 到 S4 时已用 175 秒
        _wait_step("S4", 1),
        _wait_step("S5", 1),
    ]
    orch.add_steps(steps)

    report = orch.run()

    assert [s.status for s in steps[:3]] == [StepStatus.COMPLETED] * 3
    assert steps[3].status == StepStatus.SKIPPED
    assert steps[3].error_message == SKIP_MESSAGE
    # S5 仍按同一预算判断（同样超时）
    assert steps[4].status == StepStatus.SKIPPED
    assert report.skipped == ["S4", "S5"]
    assert report.aborted_step_id is None
    assert not report.succeeded
    assert len(audit.of_kind(EventKind.WORKFLOW_TIMEOUT_APPROACHING)) == 2


def test_in_flight_step_is_not_cancelled(action_executor, audit, clock, run_id):
    orch = _orchestrator(action_executor, audit, clock, run_id, budget=5.0)
    long_step = _wait_step("LONG", 30)
    orch.add_step(long_step)

    report = orch.run()

    assert long_step.status == StepStatus.COMPLETED
    assert report.succeeded
    assert report.duration_ms == 30000.0
    # 超支时剩余预算记为 0
    assert audit.events[-1].fields["remaining_s"] == 0.0


def test_completion_event_records_remaining_budget(action_executor, audit, clock, run_id):
    orch = _orchestrator(action_executor, audit, clock, run_id, budget=10.0)
    orch.add_step(_wait_step("SHORT", 4))

    orch.run()

    done = audit.of_kind(EventKind.WORKFLOW_COMPLETE)[-1]
    assert done.fields["remaining_s"] == pytest.approx(6.0)


def test_steps_share_one_data_store(action_executor, audit, clock, run_id):
    orch = _orchestrator(action_executor, audit, clock, run_id)
    a, b = _wait_step("A", 0), _wait_step("B", 0)
    orch.add_steps([a, b])
    assert a.data is b.data is orch.store


def test_duplicate_step_id_is_rejected(action_executor, audit, clock, run_id):
    from sessionflow.core.errors import PlanError

    orch = _orchestrator(action_executor, audit, clock, run_id)
    orch.add_step(_wait_step("A", 0))
    with pytest.raises(PlanError):
        orch.add_step(_wait_step("A", 0))
