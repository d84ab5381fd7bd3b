"""报表纯函数测试"""

from datetime import UTC, date, datetime, timedelta

from taskportal.core.completion import build_completion
from taskportal.core.models import TaskPriority, TaskStatus, UserStatistics
from taskportal.core.reports import (
    ReportRange,
    completion_trend,
    filter_by_range,
    leaderboard,
    priority_distribution,
    status_distribution,
    summarize,
)
from taskportal.core.state_machine import plan_completion

NOW = datetime(2024, 3, 20, 12, 0, tzinfo=UTC)


def _completed(task_factory, actor, created_at, hours: float, priority=TaskPriority.MEDIUM):
    task = task_factory(
        created_at + timedelta(days=5), created_at, priority=priority
    )
    completion = build_completion(task, created_at + timedelta(hours=hours))
    return plan_completion(task, completion, actor, completion.completed_at).task, completion


class TestRangeFilter:
    def test_week_month_all(self, task_factory):
        tasks = [
            task_factory(NOW, NOW - timedelta(days=2)),
            task_factory(NOW, NOW - timedelta(days=20)),
            task_factory(NOW, NOW - timedelta(days=60)),
        ]
        assert len(filter_by_range(tasks, ReportRange.WEEK, NOW)) == 1
        assert len(filter_by_range(tasks, ReportRange.MONTH, NOW)) == 2
        assert len(filter_by_range(tasks, ReportRange.ALL, NOW)) == 3


class TestDistributions:
    def test_only_non_zero_buckets(self, task_factory, assignee):
        pending = task_factory(NOW, NOW, priority=TaskPriority.HIGH)
        done, _ = _completed(task_factory, assignee, NOW - timedelta(days=1), 2)

        statuses = status_distribution([pending, done])
        priorities = priority_distribution([pending, done])

        assert [(b.name, b.value) for b in statuses] == [("completed", 1), ("pending", 1)]
        assert [(b.name, b.value) for b in priorities] == [("high", 1), ("medium", 1)]


class TestSummary:
    def test_summary_counts_and_averages(self, task_factory, assignee):
        done_a, completion_a = _completed(task_factory, assignee, NOW - timedelta(days=1), 2)
        done_b, completion_b = _completed(task_factory, assignee, NOW - timedelta(days=2), 4)
        started = task_factory(NOW, NOW - timedelta(days=1)).model_copy(
            update={"status": TaskStatus.IN_PROGRESS}
        )
        pending = task_factory(NOW, NOW - timedelta(days=1))

        summary = summarize(
            [done_a, done_b, started, pending],
            [completion_a, completion_b],
            ReportRange.WEEK,
            NOW,
        )

        assert summary.total_tasks == 4
        assert summary.completed_tasks == 2
        assert summary.pending_tasks == 1
        assert summary.in_progress_tasks == 1
        assert summary.total_points == done_a.points + done_b.points
        assert summary.average_completion_hours == 3.0
        assert len(summary.completion_trend) == 7

    def test_empty_summary(self):
        summary = summarize([], [], ReportRange.ALL, NOW)
        assert summary.total_tasks == 0
        assert summary.average_completion_hours == 0.0
        assert summary.status_distribution == []


class TestTrend:
    def test_counts_per_day(self, task_factory, assignee):
        _, c1 = _completed(task_factory, assignee, NOW - timedelta(days=1, hours=3), 1)
        _, c2 = _completed(task_factory, assignee, NOW - timedelta(days=1, hours=5), 1)
        _, old = _completed(task_factory, assignee, NOW - timedelta(days=30), 1)

        trend = completion_trend([c1, c2, old], NOW)

        assert trend[0].day == date(2024, 3, 14)
        assert trend[-1].day == date(2024, 3, 20)
        assert trend[-2].completed == 2
        assert sum(p.completed for p in trend) == 2


class TestLeaderboard:
    def test_sorted_by_points(self):
        stats = [
            UserStatistics(user_id="u1", tasks_completed=1, total_points=50, total_tasks_assigned=3),
            UserStatistics(user_id="u2", tasks_completed=2, total_points=250, total_tasks_assigned=2),
        ]

        entries = leaderboard(stats, {"u2": "Bob"})

        assert [e.user_id for e in entries] == ["u2", "u1"]
        assert entries[0].user_name == "Bob"
        assert entries[1].user_name == "Unknown"
        assert entries[1].completion_rate == 33.3

    def test_limit(self):
        stats = [UserStatistics(user_id=f"u{i}", total_points=i) for i in range(10)]
        assert len(leaderboard(stats, limit=5)) == 5
