"""状态机纯函数单元测试

测试内容：
1. 合法/非法流转
2. 非循环任务完成
3. 循环任务重置与系列结束
"""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError
from taskportal.core.completion import build_completion
from taskportal.core.exceptions import InvalidTransitionError
from taskportal.core.models import (
    VALID_TRANSITIONS,
    Cadence,
    TaskStatus,
    TransitionOutcome,
    validate_transition,
)
from taskportal.core.state_machine import (
    check_transition,
    plan_completion,
    plan_status_change,
)

ASSIGNED = datetime(2024, 3, 8, 9, 0, tzinfo=UTC)
DUE = datetime(2024, 3, 10, 17, 0, tzinfo=UTC)


class TestTransitions:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (TaskStatus.PENDING, TaskStatus.IN_PROGRESS),
            (TaskStatus.PENDING, TaskStatus.COMPLETED),
            (TaskStatus.IN_PROGRESS, TaskStatus.PENDING),
            (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
        ],
    )
    def test_valid_transition(self, from_status: TaskStatus, to_status: TaskStatus):
        assert validate_transition(from_status, to_status) is True

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (TaskStatus.PENDING, TaskStatus.PENDING),
            (TaskStatus.IN_PROGRESS, TaskStatus.IN_PROGRESS),
            (TaskStatus.COMPLETED, TaskStatus.PENDING),
            (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS),
            (TaskStatus.COMPLETED, TaskStatus.COMPLETED),
        ],
    )
    def test_invalid_transition(self, from_status: TaskStatus, to_status: TaskStatus):
        assert validate_transition(from_status, to_status) is False

    def test_completed_is_terminal(self):
        assert VALID_TRANSITIONS[TaskStatus.COMPLETED] == set()

    def test_same_status_rejected(self, task_factory):
        task = task_factory(DUE, ASSIGNED)
        with pytest.raises(InvalidTransitionError):
            check_transition(task, TaskStatus.PENDING)


class TestStatusChange:
    def test_start_appends_history(self, task_factory, assignee):
        task = task_factory(DUE, ASSIGNED)
        now = ASSIGNED + timedelta(hours=1)

        result = plan_status_change(task, TaskStatus.IN_PROGRESS, assignee, now)

        assert result.outcome == TransitionOutcome.STATUS_CHANGED
        assert result.task.status == TaskStatus.IN_PROGRESS
        assert len(result.task.status_history) == 2
        last = result.task.status_history[-1]
        assert last.status == TaskStatus.IN_PROGRESS
        assert last.timestamp == now
        assert last.actor_id == assignee.user_id
        assert result.occurrence == 1
        assert result.completion is None

    def test_completed_requires_plan_completion(self, task_factory, assignee):
        task = task_factory(DUE, ASSIGNED)
        with pytest.raises(ValueError):
            plan_status_change(task, TaskStatus.COMPLETED, assignee, ASSIGNED)


class TestPlanCompletion:
    def test_non_recurring_completion(self, task_factory, assignee):
        """非循环任务截止前 2 天完成：终态 completed，150 分"""
        task = task_factory(DUE, ASSIGNED)
        completed_at = DUE - timedelta(days=2)
        completion = build_completion(task, completed_at)

        result = plan_completion(task, completion, assignee, completed_at)

        assert result.outcome == TransitionOutcome.COMPLETED
        assert result.task.status == TaskStatus.COMPLETED
        assert result.task.points == 150
        assert result.task.is_early is True
        assert result.task.completed_at == completed_at
        assert result.task.completion_count == 1
        assert result.task.status_history[-1].status == TaskStatus.COMPLETED
        assert result.next_due_date is None
        assert result.occurrence == 1

    def test_recurring_reset_in_place(self, task_factory, assignee):
        task = task_factory(
            DUE, ASSIGNED, is_recurring=True, cadence=Cadence.WEEKLY
        )
        completed_at = DUE - timedelta(hours=5)
        completion = build_completion(task, completed_at)

        result = plan_completion(task, completion, assignee, completed_at)

        assert result.outcome == TransitionOutcome.RESCHEDULED
        reset = result.task
        assert reset.task_id == task.task_id
        assert reset.status == TaskStatus.PENDING
        assert reset.due_date == DUE + timedelta(weeks=1)
        assert reset.assigned_at == completed_at
        assert reset.completed_at is None
        assert reset.points is None
        assert reset.is_early is None
        assert reset.completion_hours is None
        assert reset.completion_count == 1
        assert reset.last_completed_at == completed_at
        assert [h.status for h in reset.status_history] == [TaskStatus.PENDING]
        assert result.next_due_date == DUE + timedelta(weeks=1)
        assert result.occurrence == 1
        assert reset.occurrence == 2

    def test_final_occurrence_ends_series(self, task_factory, assignee):
        task = task_factory(
            DUE,
            ASSIGNED,
            is_recurring=True,
            cadence=Cadence.WEEKLY,
            recurring_end_date=DUE + timedelta(days=3),
        )
        completion = build_completion(task, DUE)

        result = plan_completion(task, completion, assignee, DUE)

        assert result.outcome == TransitionOutcome.SERIES_ENDED
        assert result.task.status == TaskStatus.COMPLETED
        assert result.task.is_recurring is False
        assert result.task.points == 50
        assert result.task.completion_count == 1
        assert len(result.task.status_history) == 2

    def test_next_occurrence_on_end_date_ends_series(self, task_factory, assignee):
        task = task_factory(
            DUE,
            ASSIGNED,
            is_recurring=True,
            cadence=Cadence.DAILY,
            recurring_end_date=DUE + timedelta(days=1),
        )
        completion = build_completion(task, DUE)

        exclusive = plan_completion(task, completion, assignee, DUE)
        inclusive = plan_completion(
            task, completion, assignee, DUE, series_end_inclusive=True
        )

        assert exclusive.outcome == TransitionOutcome.SERIES_ENDED
        assert inclusive.outcome == TransitionOutcome.RESCHEDULED

    def test_recurring_without_cadence_completes_terminally(self, task_factory, assignee):
        task = task_factory(DUE, ASSIGNED, is_recurring=True, cadence=None)
        completion = build_completion(task, DUE)

        result = plan_completion(task, completion, assignee, DUE)

        assert result.outcome == TransitionOutcome.COMPLETED
        assert result.task.status == TaskStatus.COMPLETED

    def test_completed_task_cannot_complete_again(self, task_factory, assignee):
        task = task_factory(DUE, ASSIGNED)
        completion = build_completion(task, DUE)
        done = plan_completion(task, completion, assignee, DUE).task

        with pytest.raises(InvalidTransitionError):
            plan_completion(done, build_completion(done, DUE), assignee, DUE)


class TestTaskInvariant:
    def test_completed_without_fields_rejected(self, task_factory):
        with pytest.raises(ValidationError):
            task_factory(DUE, ASSIGNED, status=TaskStatus.COMPLETED)

    def test_pending_with_points_rejected(self, task_factory):
        with pytest.raises(ValidationError):
            task_factory(DUE, ASSIGNED, points=50)
