"""循环任务端到端测试

创建循环任务 -> 逐次完成 -> 系列结束，验证完成历史、统计与通知。
"""

from httpx import AsyncClient

ADMIN = {"X-User-Id": "admin-1", "X-User-Name": "Admin"}
ALICE = {"X-User-Id": "user-1", "X-User-Name": "Alice"}


class TestRecurringLifecycle:
    async def test_daily_series_until_end_date(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "Check inbox",
                "assignee_ids": ["user-1"],
                "due_date": "2099-01-10T17:00:00Z",
                "is_recurring": True,
                "cadence": "daily",
                "recurring_end_date": "2099-01-12T17:00:00Z",
            },
            headers=ADMIN,
        )
        assert resp.status_code == 201
        task_id = resp.json()["tasks"][0]["task"]["task_id"]

        first = await client.post(
            f"/api/tasks/{task_id}/status",
            json={"status": "completed", "expected_occurrence": 1},
            headers=ALICE,
        )
        assert first.json()["outcome"] == "rescheduled"
        assert first.json()["task"]["task"]["due_date"].startswith("2099-01-11")

        started = await client.post(
            f"/api/tasks/{task_id}/status",
            json={"status": "in-progress", "expected_occurrence": 2},
            headers=ALICE,
        )
        assert started.json()["occurrence"] == 2

        last = await client.post(
            f"/api/tasks/{task_id}/status",
            json={"status": "completed", "expected_occurrence": 2},
            headers=ALICE,
        )
        body = last.json()
        assert body["outcome"] == "series_ended"
        assert body["occurrence"] == 2
        assert body["task"]["task"]["status"] == "completed"
        assert body["task"]["task"]["is_recurring"] is False
        assert body["task"]["task"]["completion_count"] == 2

        history = (await client.get(f"/api/tasks/{task_id}/history")).json()["completions"]
        assert [c["occurrence_number"] for c in history] == [2, 1]
        assert {c["task_id"] for c in history} == {task_id}

        stats = (await client.get("/api/users/user-1/stats")).json()
        assert stats["total_tasks_assigned"] == 2
        assert stats["tasks_completed"] == 2
        assert stats["total_points"] == 300

        admin_notes = (await client.get("/api/users/admin-1/notifications")).json()
        assert admin_notes["notifications"][0]["title"] == "Recurring Task Series Completed"
        assert admin_notes["notifications"][0]["body"] == (
            "Check inbox series completed! Total: 2 times"
        )

        alice_titles = [
            n["title"]
            for n in (await client.get("/api/users/user-1/notifications")).json()[
                "notifications"
            ]
        ]
        assert alice_titles.count("Recurring Task - Next Occurrence") == 1

    async def test_completion_by_other_user_not_scored(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "Call supplier",
                "assignee_ids": ["user-1"],
                "due_date": "2099-01-10T17:00:00Z",
            },
            headers=ADMIN,
        )
        task_id = resp.json()["tasks"][0]["task"]["task_id"]

        done = await client.post(
            f"/api/tasks/{task_id}/status", json={"status": "completed"}, headers=ADMIN
        )
        assert done.json()["outcome"] == "completed"

        stats = (await client.get("/api/users/user-1/stats")).json()
        assert stats["tasks_completed"] == 0
        assert stats["total_tasks_assigned"] == 1

        # 创建人本人操作，不通知创建人
        admin_notes = (await client.get("/api/users/admin-1/notifications")).json()
        assert admin_notes["notifications"] == []
