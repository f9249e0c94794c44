"""查询执行与重试策略"""

import logging
import time
from typing import Callable, Dict, Any

from app.db.client import (
    CLIENT_ERROR_CODE,
    FOREIGN_KEY_VIOLATION_CODE,
    NOT_FOUND_CODE,
    RAISE_EXCEPTION_CODE,
    UNDEFINED_TABLE_CODE,
    UNIQUE_VIOLATION_CODE,
    QueryResult,
    Store,
    StoreError,
)

logger = logging.getLogger(__name__)

Operation = Callable[[], QueryResult]

# 确定性失败，重试没有意义
NON_RETRYABLE_CODES = frozenset({
    NOT_FOUND_CODE,
    UNIQUE_VIOLATION_CODE,
    FOREIGN_KEY_VIOLATION_CODE,
    RAISE_EXCEPTION_CODE,
})


def execute(operation: Operation) -> QueryResult:
    """执行一次数据源操作，本地异常也转换为 error 返回，不抛出"""
    try:
        return operation()
    except Exception as e:
        logger.error(f"Query raised locally: {e}", exc_info=True)
        return QueryResult(error=StoreError(
            code=CLIENT_ERROR_CODE,
            message=str(e) or type(e).__name__,
            details=type(e).__name__,
        ))


def is_retryable(error: StoreError) -> bool:
    return error.code not in NON_RETRYABLE_CODES


def with_retry(operation: Operation, max_attempts: int = 3, delay_ms: int = 1000) -> QueryResult:
    """固定间隔重试

    成功立即返回；不可重试的错误立即返回；
    最多调用 max_attempts 次，耗尽后返回最后一次的错误。
    """
    attempts = max(1, max_attempts)
    result = QueryResult()
    for attempt in range(1, attempts + 1):
        result = execute(operation)
        if result.error is None:
            return result
        if not is_retryable(result.error):
            return result
        if attempt < attempts:
            logger.warning(
                f"Query failed (attempt {attempt}/{attempts}): "
                f"[{result.error.code}] {result.error.message}. Retrying in {delay_ms}ms..."
            )
            time.sleep(delay_ms / 1000.0)
    logger.error(f"Query failed after {attempts} attempts: [{result.error.code}] {result.error.message}")
    return result


def check_connection(store: Store) -> Dict[str, Any]:
    """启动检查 / 健康检查: 对 products 做一次 count 查询"""
    start = time.monotonic()
    result = execute(lambda: store.table("products").select(head=True).limit(1).execute())
    latency = f"{int((time.monotonic() - start) * 1000)}ms"
    if result.error is None:
        return {"status": "connected", "latency": latency}
    if result.error.code in (NOT_FOUND_CODE, UNDEFINED_TABLE_CODE):
        # 能访问到数据库，只是表还没建
        return {"status": "connected", "latency": latency, "warning": result.error.message}
    return {"status": "error", "error": result.error.message}
