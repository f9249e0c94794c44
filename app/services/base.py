from typing import Any

from app.core.errors import StoreOperationError
from app.db.client import NOT_FOUND_CODE, Store
from app.db.query import Operation, with_retry


class StoreService:
    """数据源服务基类：所有操作经过重试策略，失败时抛出分类后的业务异常"""

    def __init__(self, store: Store, max_attempts: int = 3, delay_ms: int = 1000):
        self.store = store
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms

    def _run(self, operation: Operation, missing_ok: bool = False) -> Any:
        result = with_retry(operation, self.max_attempts, self.delay_ms)
        if result.error is None:
            return result.data
        if missing_ok and result.error.code == NOT_FOUND_CODE:
            return None
        raise StoreOperationError.from_store_error(result.error)
