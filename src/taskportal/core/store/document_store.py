"""DocumentStore SQLite 实现

集合 + 文档 ID 寻址的无模式 JSON 文档存储，支持等值/范围查询、排序、
compare-and-swap 更新、幂等原子计数增量与变更订阅。

每个写操作是一个独立提交的事务，同一连接上的写操作由写锁串行化。
"""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

import aiosqlite
import structlog
from pydantic_core import to_jsonable_python
from ulid import ULID

from ..exceptions import (
    DocumentNotFoundError,
    DuplicateDocumentError,
    InconsistencyError,
    StoreError,
    VersionConflictError,
)
from ..models.document import Document, Filter, check_field_path
from .change_hub import ChangeHub

log = structlog.get_logger()

T = TypeVar("T")

_SELECT_COLUMNS = "collection, doc_id, data, version, created_at, updated_at"

_SQL_OPS = {"==": "=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _to_sql_value(value: Any) -> Any:
    """将查询参数转换为与 json_extract 结果可比较的 SQL 值"""
    jsonable = to_jsonable_python(value)
    if isinstance(jsonable, bool):
        # json_extract 对 true/false 返回 1/0
        return int(jsonable)
    if isinstance(jsonable, (list, dict)):
        return json.dumps(jsonable, ensure_ascii=False)
    return jsonable


def _json_path(field: str) -> str:
    return f"'$.{check_field_path(field)}'"


class SqliteDocumentStore:
    """DocumentStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, hub: ChangeHub | None = None) -> None:
        self._conn = conn
        self._hub = hub or ChangeHub()
        self._write_lock = asyncio.Lock()

    @property
    def hub(self) -> ChangeHub:
        return self._hub

    # ------------------------------------------------------------------
    # 读
    # ------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> Document | None:
        """根据集合与文档 ID 读取文档"""
        rows = await self._read(
            f"SELECT {_SELECT_COLUMNS} FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        return self._row_to_document(rows[0]) if rows else None

    async def find_by_dedup_key(self, collection: str, dedup_key: str) -> Document | None:
        """根据幂等键读取文档"""
        rows = await self._read(
            f"SELECT {_SELECT_COLUMNS} FROM documents "
            "WHERE collection = ? AND dedup_key = ?",
            (collection, dedup_key),
        )
        return self._row_to_document(rows[0]) if rows else None

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        """按条件查询文档

        Args:
            collection: 集合名
            filters: 查询条件（AND 组合）
            order_by: 排序字段路径，None 时按创建顺序
            descending: 是否倒序
            limit: 最多返回条数
        """
        where_sql, params = self._build_where(collection, filters)
        direction = "DESC" if descending else "ASC"
        if order_by is not None:
            order_sql = (
                f"ORDER BY json_extract(data, {_json_path(order_by)}) {direction}, "
                f"doc_id {direction}"
            )
        else:
            order_sql = f"ORDER BY created_at {direction}, doc_id {direction}"

        sql = f"SELECT {_SELECT_COLUMNS} FROM documents WHERE {where_sql} {order_sql}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = await self._read(sql, params)
        return [self._row_to_document(row) for row in rows]

    async def count(self, collection: str, filters: Iterable[Filter] = ()) -> int:
        """统计满足条件的文档数"""
        where_sql, params = self._build_where(collection, filters)
        rows = await self._read(f"SELECT COUNT(*) FROM documents WHERE {where_sql}", params)
        return rows[0][0] if rows else 0

    async def subscribe(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> AsyncIterator[list[Document]]:
        """订阅查询结果快照

        先推送当前快照，之后集合每次变更重新查询并推送。
        积压的多次变更通知合并为一次快照。
        """
        filters = list(filters)
        queue = await self._hub.subscribe(collection)
        try:
            yield await self.query(collection, filters, order_by, descending, limit)
            while True:
                await queue.get()
                while not queue.empty():
                    queue.get_nowait()
                yield await self.query(collection, filters, order_by, descending, limit)
        finally:
            await self._hub.unsubscribe(collection, queue)

    # ------------------------------------------------------------------
    # 写
    # ------------------------------------------------------------------

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
        dedup_key: str | None = None,
    ) -> str:
        """创建文档

        Args:
            collection: 集合名
            data: 文档数据
            doc_id: 指定文档 ID，None 时生成 ULID
            dedup_key: 幂等键，同一集合内唯一

        Returns:
            文档 ID

        Raises:
            DuplicateDocumentError: dedup_key 已存在
        """
        doc_id = doc_id or str(ULID())
        payload = json.dumps(to_jsonable_python(dict(data)), ensure_ascii=False)

        async def _insert() -> str:
            if dedup_key is not None:
                existing = await self._find_dedup_id(collection, dedup_key)
                if existing is not None:
                    raise DuplicateDocumentError(collection, dedup_key, existing)
            now = _now_iso()
            await self._conn.execute(
                """
                INSERT INTO documents (collection, doc_id, data, version, dedup_key,
                                       created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?, ?)
                """,
                (collection, doc_id, payload, dedup_key, now, now),
            )
            return doc_id

        try:
            return await self._write(collection, doc_id, _insert)
        except aiosqlite.IntegrityError as e:
            # 跨连接并发写入导致的唯一约束冲突
            if dedup_key is not None:
                existing = await self._find_dedup_id(collection, dedup_key)
                if existing is not None:
                    raise DuplicateDocumentError(collection, dedup_key, existing) from e
            raise InconsistencyError(
                f"{collection} document {doc_id} already exists"
            ) from e

    async def put(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> int:
        """整体写入文档（不存在则创建，存在则替换），返回新版本号"""
        payload = json.dumps(to_jsonable_python(dict(data)), ensure_ascii=False)

        async def _upsert() -> int:
            now = _now_iso()
            await self._conn.execute(
                """
                INSERT INTO documents (collection, doc_id, data, version, created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?)
                ON CONFLICT(collection, doc_id) DO UPDATE SET
                    data = excluded.data,
                    version = documents.version + 1,
                    updated_at = excluded.updated_at
                """,
                (collection, doc_id, payload, now, now),
            )
            return await self._fetch_version(collection, doc_id) or 1

        return await self._write(collection, doc_id, _upsert)

    async def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> int:
        """局部更新文档（JSON merge patch，值为 None 的字段被删除）

        Args:
            collection: 集合名
            doc_id: 文档 ID
            partial: 要合并的字段
            expected_version: 期望的当前版本号，不一致时拒绝写入

        Returns:
            更新后的版本号

        Raises:
            DocumentNotFoundError: 文档不存在
            VersionConflictError: 版本号不一致
        """
        patch = json.dumps(to_jsonable_python(dict(partial)), ensure_ascii=False)

        async def _patch() -> int:
            sql = """
                UPDATE documents
                SET data = json_patch(data, ?), version = version + 1, updated_at = ?
                WHERE collection = ? AND doc_id = ?
            """
            params: list[Any] = [patch, _now_iso(), collection, doc_id]
            if expected_version is not None:
                sql += " AND version = ?"
                params.append(expected_version)

            cursor = await self._conn.execute(sql, params)
            if cursor.rowcount == 0:
                current = await self._fetch_version(collection, doc_id)
                if current is None:
                    raise DocumentNotFoundError(collection, doc_id)
                raise VersionConflictError(collection, doc_id, expected_version or 0)
            return await self._fetch_version(collection, doc_id) or 0

        return await self._write(collection, doc_id, _patch)

    async def increment(
        self,
        collection: str,
        doc_id: str,
        deltas: Mapping[str, int | float],
        set_fields: Mapping[str, Any] | None = None,
        defaults: Mapping[str, Any] | None = None,
        op_key: str | None = None,
    ) -> bool:
        """原子计数增量（文档不存在时按 defaults 惰性创建）

        在单条 UPSERT 语句内完成读-改-写，避免并发丢失更新。

        Args:
            collection: 集合名
            doc_id: 文档 ID
            deltas: 字段 -> 增量
            set_fields: 同时覆盖写入的字段
            defaults: 文档首次创建时的初始数据
            op_key: 幂等键，同一 op_key 只生效一次

        Returns:
            True 表示已应用，False 表示 op_key 已应用过
        """
        set_fields = dict(set_fields or {})
        defaults = dict(defaults or {})
        for field in [*deltas, *set_fields]:
            if "." in check_field_path(field):
                raise ValueError(f"increment only supports top-level fields: {field!r}")

        initial = {
            **to_jsonable_python(defaults),
            **to_jsonable_python(set_fields),
        }
        for field, delta in deltas.items():
            initial[field] = defaults.get(field, 0) + delta

        assignments: list[str] = []
        params: list[Any] = []
        for field, delta in deltas.items():
            assignments.append(
                f"'$.{field}', COALESCE(json_extract(documents.data, '$.{field}'), 0) + ?"
            )
            params.append(delta)
        for field, value in set_fields.items():
            assignments.append(f"'$.{field}', json(?)")
            params.append(json.dumps(to_jsonable_python(value), ensure_ascii=False))

        if assignments:
            data_sql = f"json_set(documents.data, {', '.join(assignments)})"
        else:
            data_sql = "documents.data"

        async def _apply() -> bool:
            now = _now_iso()
            if op_key is not None:
                cursor = await self._conn.execute(
                    """
                    INSERT OR IGNORE INTO applied_ops (op_key, collection, doc_id, applied_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (op_key, collection, doc_id, now),
                )
                if cursor.rowcount == 0:
                    return False

            await self._conn.execute(
                f"""
                INSERT INTO documents (collection, doc_id, data, version, created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?)
                ON CONFLICT(collection, doc_id) DO UPDATE SET
                    data = {data_sql},
                    version = documents.version + 1,
                    updated_at = excluded.updated_at
                """,
                [collection, doc_id, json.dumps(initial, ensure_ascii=False), now, now, *params],
            )
            return True

        return await self._write(collection, doc_id, _apply)

    async def delete(self, collection: str, doc_id: str) -> bool:
        """删除文档，返回是否存在并被删除"""

        async def _delete() -> bool:
            cursor = await self._conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )
            return cursor.rowcount > 0

        return await self._write(collection, doc_id, _delete)

    async def delete_where(self, collection: str, filters: Iterable[Filter]) -> int:
        """按条件批量删除，返回删除条数"""
        where_sql, params = self._build_where(collection, filters)

        async def _delete() -> int:
            cursor = await self._conn.execute(
                f"DELETE FROM documents WHERE {where_sql}", params
            )
            return cursor.rowcount

        return await self._write(collection, "*", _delete)

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    async def _write(
        self,
        collection: str,
        doc_id: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """在写锁内执行单个写操作并提交；失败回滚"""
        async with self._write_lock:
            try:
                result = await operation()
                await self._conn.commit()
            except aiosqlite.IntegrityError:
                await self._conn.rollback()
                raise
            except aiosqlite.Error as e:
                await self._conn.rollback()
                log.error(
                    "document_write_failed",
                    collection=collection,
                    doc_id=doc_id,
                    error_type=type(e).__name__,
                )
                raise StoreError(f"write to {collection} failed: {e}", e) from e
            except Exception:
                await self._conn.rollback()
                raise

        await self._hub.publish(collection, doc_id)
        return result

    async def _read(self, sql: str, params: Iterable[Any]) -> list:
        try:
            cursor = await self._conn.execute(sql, tuple(params))
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StoreError(f"read failed: {e}", e) from e

    async def _fetch_version(self, collection: str, doc_id: str) -> int | None:
        cursor = await self._conn.execute(
            "SELECT version FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def _find_dedup_id(self, collection: str, dedup_key: str) -> str | None:
        cursor = await self._conn.execute(
            "SELECT doc_id FROM documents WHERE collection = ? AND dedup_key = ?",
            (collection, dedup_key),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    @staticmethod
    def _build_where(
        collection: str, filters: Iterable[Filter]
    ) -> tuple[str, list[Any]]:
        clauses = ["collection = ?"]
        params: list[Any] = [collection]
        for f in filters:
            expr = f"json_extract(data, {_json_path(f.field)})"
            if f.op == "in":
                values = list(f.value or [])
                if not values:
                    clauses.append("0")
                    continue
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"{expr} IN ({placeholders})")
                params.extend(_to_sql_value(v) for v in values)
            elif f.op == "contains":
                clauses.append(
                    "EXISTS (SELECT 1 FROM json_each(data, "
                    f"{_json_path(f.field)}) WHERE json_each.value = ?)"
                )
                params.append(_to_sql_value(f.value))
            elif f.value is None and f.op in ("==", "!="):
                clauses.append(f"{expr} IS {'NOT ' if f.op == '!=' else ''}NULL")
            else:
                clauses.append(f"{expr} {_SQL_OPS[f.op]} ?")
                params.append(_to_sql_value(f.value))
        return " AND ".join(clauses), params

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> Document:
        """将数据库行转换为 Document 模型"""
        return Document(
            collection=row[0],
            doc_id=row[1],
            data=json.loads(row[2]) if row[2] else {},
            version=row[3],
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
        )
