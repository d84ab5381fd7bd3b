"""ChangeHub -- 内存中的集合变更广播器

每个订阅者持有一个 asyncio.Queue，文档写入后按集合广播变更通知，
供 subscribe 重新查询并推送快照。
"""

import asyncio
from collections import defaultdict


class ChangeHub:
    """集合级变更广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # collection -> set of asyncio.Queue
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    async def subscribe(self, collection: str) -> asyncio.Queue:
        """订阅指定集合的变更

        Returns:
            asyncio.Queue 实例，每次变更推送一个文档 ID
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers[collection].add(queue)
        return queue

    async def unsubscribe(self, collection: str, queue: asyncio.Queue) -> None:
        """取消订阅"""
        self._subscribers[collection].discard(queue)
        if not self._subscribers[collection]:
            del self._subscribers[collection]

    async def publish(self, collection: str, doc_id: str) -> None:
        """向集合的所有订阅者广播变更

        队列已满说明订阅者尚有未消费的通知，下一次查询会包含本次变更，直接跳过。
        """
        for queue in self._subscribers.get(collection, set()):
            try:
                queue.put_nowait(doc_id)
            except asyncio.QueueFull:
                continue

    def subscriber_count(self, collection: str) -> int:
        return len(self._subscribers.get(collection, set()))
