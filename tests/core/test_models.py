"""数据模型单元测试"""

from datetime import UTC, datetime, timedelta

import pytest
from taskportal.core.models import (
    Meeting,
    TaskCompletion,
    TaskPriority,
    TaskStatus,
    UserStatistics,
    completion_key,
)

DUE = datetime(2024, 3, 10, 17, 0, tzinfo=UTC)


class TestTaskModel:
    def test_document_round_trip_keeps_identity_separate(self, task_factory):
        task = task_factory(DUE)
        doc = task.to_document()

        assert "task_id" not in doc
        assert "version" not in doc

        restored = type(task).from_document(task.task_id, doc, version=3)
        assert restored.task_id == task.task_id
        assert restored.version == 3
        assert restored.status_history == task.status_history

    def test_occurrence_numbering(self, task_factory):
        task = task_factory(DUE)
        assert task.occurrence == 1
        assert task.model_copy(update={"completion_count": 2}).occurrence == 3

    def test_status_values(self):
        assert [s.value for s in TaskStatus] == ["pending", "in-progress", "completed"]


class TestTaskCompletionModel:
    def test_dedup_key(self):
        completion = TaskCompletion(
            task_id="t1",
            task_title="T",
            priority=TaskPriority.HIGH,
            assignee_id="u1",
            creator_id="a1",
            assigned_at=DUE - timedelta(days=1),
            due_date=DUE,
            completed_at=DUE,
            completion_hours=24.0,
            points=50,
            is_early=False,
            occurrence_number=4,
        )
        assert completion.dedup_key == "t1#4" == completion_key("t1", 4)

    def test_occurrence_starts_at_one(self):
        with pytest.raises(ValueError):
            TaskCompletion(
                task_id="t1",
                task_title="T",
                priority=TaskPriority.LOW,
                assignee_id="u1",
                creator_id="a1",
                assigned_at=DUE,
                due_date=DUE,
                completed_at=DUE,
                completion_hours=0,
                points=50,
                is_early=False,
                occurrence_number=0,
            )


class TestUserStatistics:
    def test_derived_values(self):
        stats = UserStatistics(
            user_id="u1",
            tasks_completed=3,
            total_points=325,
            total_completion_hours=10.0,
            total_tasks_assigned=7,
        )
        assert stats.average_completion_hours == 3.33
        assert stats.completion_rate == 42.9

    def test_empty_statistics(self):
        stats = UserStatistics(user_id="u1")
        assert stats.average_completion_hours == 0.0
        assert stats.completion_rate == 0.0

    def test_derived_values_serialised(self):
        data = UserStatistics(user_id="u1", tasks_completed=1, total_tasks_assigned=2).model_dump()
        assert data["completion_rate"] == 50.0


class TestMeeting:
    def test_is_past(self):
        meeting = Meeting(
            title="Standup",
            scheduled_at=DUE,
            creator_id="a1",
            created_at=DUE - timedelta(days=1),
        )
        assert meeting.is_past(DUE + timedelta(minutes=1)) is True
        assert meeting.is_past(DUE - timedelta(minutes=1)) is False
