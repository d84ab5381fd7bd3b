"""CLI 入口模块 -- python -m taskportal.core <command>

支持的命令：
  rebuild-statistics  从完成历史重建用户统计
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskportal.core <command>")
        print("命令:")
        print("  rebuild-statistics  从完成历史重建用户统计")
        sys.exit(1)

    command = sys.argv[1]

    if command == "rebuild-statistics":
        asyncio.run(rebuild_statistics())
    else:
        print(f"未知命令: {command}")
        print("可用命令: rebuild-statistics")
        sys.exit(1)


async def rebuild_statistics() -> None:
    """执行统计重建"""
    from .projection import rebuild_statistics as rebuild
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print("开始重建用户统计...")

    store_group = await create_store_group(db_path)

    try:
        count = await rebuild(
            store_group.completion_store,
            store_group.statistics_store,
        )
        print(f"重建完成，处理 {count} 条完成记录")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
