"""Task Portal 异常体系

错误分为校验、权限、未找到、存储与一致性几类。
每个异常携带 code 与 status_code，由 gateway 统一映射为 HTTP 错误响应。
"""


class PortalError(Exception):
    """基础异常"""

    code = "PORTAL_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskValidationError(PortalError):
    """必填字段缺失或取值非法，任何写入之前抛出"""

    code = "VALIDATION_FAILED"
    status_code = 422

    def __init__(self, errors: list[str]) -> None:
        """
        Args:
            errors: 逐条错误描述
        """
        super().__init__("; ".join(errors))
        self.errors = errors


class PermissionDeniedError(PortalError):
    """操作者无权执行该操作"""

    code = "FORBIDDEN"
    status_code = 403


class DocumentNotFoundError(PortalError):
    """文档不存在"""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, collection: str, doc_id: str, message: str | None = None) -> None:
        super().__init__(
            message or f"{collection} document with id {doc_id} does not exist"
        )
        self.collection = collection
        self.doc_id = doc_id


class TaskNotFoundError(DocumentNotFoundError):
    """任务不存在（可能已被删除）"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__("tasks", task_id, f"Task with id {task_id} does not exist")
        self.task_id = task_id


class StoreError(PortalError):
    """文档存储拒绝读写（网络、权限、配额、锁等）

    幂等写入会按配置重试，超过次数后向调用方抛出。
    """

    code = "STORE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class DuplicateDocumentError(PortalError):
    """幂等键冲突：同一 dedup_key 的文档已存在"""

    code = "DUPLICATE_DOCUMENT"
    status_code = 409

    def __init__(self, collection: str, dedup_key: str, existing_id: str) -> None:
        super().__init__(
            f"{collection} document with dedup key {dedup_key} already exists"
        )
        self.collection = collection
        self.dedup_key = dedup_key
        self.existing_id = existing_id


class InconsistencyError(PortalError):
    """写入会破坏不变量"""

    code = "INCONSISTENT_STATE"
    status_code = 409


class VersionConflictError(InconsistencyError):
    """compare-and-swap 失败：文档已被并发修改"""

    code = "VERSION_CONFLICT"

    def __init__(self, collection: str, doc_id: str, expected_version: int) -> None:
        super().__init__(
            f"{collection} document {doc_id} changed since version {expected_version}"
        )
        self.collection = collection
        self.doc_id = doc_id
        self.expected_version = expected_version


class OccurrenceConflictError(InconsistencyError):
    """调用方基于过期快照发起流转：期望的发生序号与当前不一致"""

    code = "OCCURRENCE_CONFLICT"

    def __init__(self, task_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Task {task_id} is at occurrence {actual}, expected {expected}"
        )
        self.task_id = task_id
        self.expected = expected
        self.actual = actual


class InvalidTransitionError(InconsistencyError):
    """非法状态流转"""

    code = "INVALID_TRANSITION"

    def __init__(self, task_id: str, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Task {task_id} cannot transition from {from_status} to {to_status}"
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status
