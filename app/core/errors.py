"""错误分类与业务异常"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.db.client import (
    FOREIGN_KEY_VIOLATION_CODE,
    NOT_FOUND_CODE,
    RAISE_EXCEPTION_CODE,
    UNDEFINED_TABLE_CODE,
    UNIQUE_VIOLATION_CODE,
    StoreError,
)


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    REFERENCE = "ReferenceError"
    SCHEMA = "SchemaError"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID = "InvalidRequest"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    code: str
    message: str
    original: Optional[StoreError] = None


# code -> (kind, 用户可见信息)；信息为 None 时透传原始信息
_CLASSIFICATION = {
    NOT_FOUND_CODE: (ErrorKind.NOT_FOUND, "Record not found."),
    UNIQUE_VIOLATION_CODE: (ErrorKind.CONFLICT, "Duplicate entry found."),
    FOREIGN_KEY_VIOLATION_CODE: (ErrorKind.REFERENCE, "Reference error (foreign key constraint violation)."),
    UNDEFINED_TABLE_CODE: (ErrorKind.SCHEMA, "Database table not found."),
    RAISE_EXCEPTION_CODE: (ErrorKind.INSUFFICIENT_STOCK, None),
}


def classify(error: StoreError) -> ClassifiedError:
    """数据源错误码 -> 业务错误类型和提示信息（纯函数，不做重试判断）"""
    code = error.code or "UNKNOWN_ERROR"
    kind, message = _CLASSIFICATION.get(code, (ErrorKind.UNKNOWN, None))
    if message is None:
        message = error.message or "An unexpected error occurred."
    return ClassifiedError(kind=kind, code=code, message=message, original=error)


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.REFERENCE: 409,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.INVALID: 400,
    ErrorKind.SCHEMA: 500,
    ErrorKind.UNKNOWN: 500,
}


class ServiceError(Exception):
    """业务层异常基类，由全局异常处理器转换为统一响应"""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND.get(self.kind, 500)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "code": self.code, "message": self.message}


class StoreOperationError(ServiceError):
    """数据源操作失败（重试后仍失败或不可重试）"""

    def __init__(self, classified: ClassifiedError):
        super().__init__(classified.message, kind=classified.kind, code=classified.code)
        self.classified = classified
        # commit_order 拒绝时 hint 为出问题的商品ID
        self.product_id: Optional[int] = None
        hint = classified.original.hint if classified.original else None
        if classified.kind == ErrorKind.INSUFFICIENT_STOCK and hint and hint.isdigit():
            self.product_id = int(hint)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.product_id is not None:
            data["product_id"] = self.product_id
        return data

    @classmethod
    def from_store_error(cls, error: StoreError) -> "StoreOperationError":
        return cls(classify(error))


class InsufficientStockOrNotFound(ServiceError):
    """商品不存在或库存不足"""

    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"

    def __init__(self, product_id: int, reason: str = INSUFFICIENT_STOCK):
        kind = ErrorKind.NOT_FOUND if reason == self.NOT_FOUND else ErrorKind.INSUFFICIENT_STOCK
        super().__init__(f"Insufficient stock or product not found: {product_id}", kind=kind)
        self.product_id = product_id
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["product_id"] = self.product_id
        return data


class InvalidOrderError(ServiceError):
    def __init__(self, message: str = "Invalid order data."):
        super().__init__(message, kind=ErrorKind.INVALID)
