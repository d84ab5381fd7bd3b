"""统计重建测试"""

from datetime import timedelta

from taskportal.core.models import Cadence, TaskStatus
from taskportal.core.projection import aggregate, rebuild_statistics


class TestRebuildStatistics:
    async def test_rebuild_repairs_drift(self, engine, stores, clock, task_factory, assignee):
        task = await stores.task_store.create_task(
            task_factory(clock.now + timedelta(days=1), clock.now, True, Cadence.DAILY)
        )
        await stores.statistics_store.record_assignment(
            assignee.user_id, 1, op_key=f"assign:{task.task_id}#1"
        )

        await engine.transition(task.task_id, TaskStatus.COMPLETED, assignee)
        clock.advance(days=1)
        await engine.transition(task.task_id, TaskStatus.COMPLETED, assignee)

        expected = await stores.statistics_store.get(assignee.user_id)

        # 模拟一次漂移：多记了一次完成
        await stores.statistics_store.record_completion(
            assignee.user_id, 999, 12.0, op_key="complete:bogus#1"
        )

        processed = await rebuild_statistics(
            stores.completion_store, stores.statistics_store
        )
        rebuilt = await stores.statistics_store.get(assignee.user_id)

        assert processed == 2
        assert rebuilt.tasks_completed == expected.tasks_completed == 2
        assert rebuilt.total_points == expected.total_points
        assert rebuilt.total_completion_hours == round(expected.total_completion_hours, 2)
        assert rebuilt.total_tasks_assigned == expected.total_tasks_assigned == 3

    async def test_user_without_history_is_zeroed(self, stores):
        await stores.statistics_store.record_completion(
            "ghost", 100, 5.0, op_key="complete:gone#1"
        )

        processed = await rebuild_statistics(
            stores.completion_store, stores.statistics_store
        )
        ghost = await stores.statistics_store.get("ghost")

        assert processed == 0
        assert ghost.tasks_completed == 0
        assert ghost.total_points == 0
        assert ghost.total_tasks_assigned == 0

    async def test_aggregate_groups_by_assignee(self, engine, stores, clock, task_factory, assignee):
        for _ in range(2):
            task = await stores.task_store.create_task(
                task_factory(clock.now + timedelta(days=3), clock.now)
            )
            await engine.transition(task.task_id, TaskStatus.COMPLETED, assignee)

        totals = aggregate(await stores.completion_store.list_all())

        assert list(totals) == [assignee.user_id]
        assert totals[assignee.user_id].tasks_completed == 2
        assert totals[assignee.user_id].total_points == 300

    async def test_completion_by_other_user_not_credited(
        self, engine, stores, clock, task_factory, assignee, creator
    ):
        own = await stores.task_store.create_task(
            task_factory(clock.now + timedelta(days=3), clock.now)
        )
        covered = await stores.task_store.create_task(
            task_factory(clock.now + timedelta(days=3), clock.now)
        )
        await engine.transition(own.task_id, TaskStatus.COMPLETED, assignee)
        await engine.transition(covered.task_id, TaskStatus.COMPLETED, creator)

        completions = await stores.completion_store.list_all()
        by_task = {c.task_id: c for c in completions}
        assert by_task[covered.task_id].completed_by == creator.user_id
        assert by_task[covered.task_id].scored is False

        live = await stores.statistics_store.get(assignee.user_id)
        totals = aggregate(completions)
        assert totals[assignee.user_id].tasks_completed == live.tasks_completed == 1
        assert totals[assignee.user_id].total_points == live.total_points == 150

        await rebuild_statistics(stores.completion_store, stores.statistics_store)
        rebuilt = await stores.statistics_store.get(assignee.user_id)
        assert rebuilt.tasks_completed == 1
        assert rebuilt.total_points == 150
