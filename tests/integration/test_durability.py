"""持久性与统计重建集成测试"""

import os
from pathlib import Path

from httpx import ASGITransport, AsyncClient
from taskportal.core.projection import rebuild_statistics
from taskportal.core.store import create_store_group

ADMIN = {"X-User-Id": "admin-1", "X-User-Name": "Admin"}
ALICE = {"X-User-Id": "user-1", "X-User-Name": "Alice"}


class TestDurability:
    async def test_state_survives_restart(self, tmp_path: Path):
        """写入 -> 关闭 Store -> 重新打开 -> 数据完整，统计可重建"""
        db_path = str(tmp_path / "durable.db")
        os.environ["TASKPORTAL_DB_PATH"] = db_path
        os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

        try:
            from taskportal.gateway.main import build_engine, create_app

            app1 = create_app()
            sg1 = await create_store_group(db_path)
            app1.state.store_group = sg1
            app1.state.engine = build_engine(sg1)

            async with AsyncClient(
                transport=ASGITransport(app=app1), base_url="http://test"
            ) as c1:
                resp = await c1.post(
                    "/api/tasks",
                    json={
                        "title": "Weekly sync notes",
                        "assignee_ids": ["user-1"],
                        "due_date": "2099-01-10T17:00:00Z",
                        "is_recurring": True,
                        "cadence": "weekly",
                    },
                    headers=ADMIN,
                )
                task_id = resp.json()["tasks"][0]["task"]["task_id"]
                await c1.post(
                    f"/api/tasks/{task_id}/status",
                    json={"status": "completed"},
                    headers=ALICE,
                )

            await sg1.conn.close()

            app2 = create_app()
            sg2 = await create_store_group(db_path)
            app2.state.store_group = sg2
            app2.state.engine = build_engine(sg2)

            async with AsyncClient(
                transport=ASGITransport(app=app2), base_url="http://test"
            ) as c2:
                view = (await c2.get(f"/api/tasks/{task_id}")).json()
                assert view["occurrence"] == 2
                assert view["task"]["status"] == "pending"
                assert view["task"]["due_date"].startswith("2099-01-17")

                history = (await c2.get(f"/api/tasks/{task_id}/history")).json()
                assert len(history["completions"]) == 1

            processed = await rebuild_statistics(
                sg2.completion_store, sg2.statistics_store
            )
            stats = await sg2.statistics_store.get("user-1")
            assert processed == 1
            assert stats.tasks_completed == 1
            assert stats.total_points == 150
            assert stats.total_tasks_assigned == 2

            await sg2.conn.close()
        finally:
            os.environ.pop("TASKPORTAL_DB_PATH", None)
            os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)
