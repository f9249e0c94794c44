"""错误分类测试"""
import pytest

from app.core.errors import (
    ErrorKind,
    InsufficientStockOrNotFound,
    InvalidOrderError,
    StoreOperationError,
    classify,
)
from app.db.client import StoreError


class TestClassify:
    """数据源错误码 -> 业务错误类型"""

    @pytest.mark.parametrize("code, kind, message", [
        ("PGRST116", ErrorKind.NOT_FOUND, "Record not found."),
        ("23505", ErrorKind.CONFLICT, "Duplicate entry found."),
        ("23503", ErrorKind.REFERENCE, "Reference error (foreign key constraint violation)."),
        ("42P01", ErrorKind.SCHEMA, "Database table not found."),
    ])
    def test_known_codes(self, code, kind, message):
        error = StoreError(code=code, message="raw driver message")

        classified = classify(error)

        assert classified.kind == kind
        assert classified.code == code
        assert classified.message == message
        assert classified.original is error

    def test_unknown_code_passes_message_through(self):
        classified = classify(StoreError(code="08006", message="server closed the connection unexpectedly"))

        assert classified.kind == ErrorKind.UNKNOWN
        assert classified.message == "server closed the connection unexpectedly"

    def test_missing_code_and_message(self):
        classified = classify(StoreError(code="", message=""))

        assert classified.kind == ErrorKind.UNKNOWN
        assert classified.code == "UNKNOWN_ERROR"
        assert classified.message == "An unexpected error occurred."

    def test_stored_procedure_rejection(self):
        classified = classify(StoreError(code="P0001", message="Insufficient stock or product not found: 7"))

        assert classified.kind == ErrorKind.INSUFFICIENT_STOCK
        assert classified.message == "Insufficient stock or product not found: 7"


class TestServiceErrors:
    """业务异常与 HTTP 状态码"""

    @pytest.mark.parametrize("code, status", [
        ("PGRST116", 404),
        ("23505", 409),
        ("23503", 409),
        ("P0001", 409),
        ("42P01", 500),
        ("08006", 500),
    ])
    def test_store_operation_error_status(self, code, status):
        exc = StoreOperationError.from_store_error(StoreError(code=code, message="x"))

        assert exc.status_code == status
        assert exc.to_dict()["code"] == code

    def test_insufficient_stock(self):
        exc = InsufficientStockOrNotFound(3)

        assert exc.kind == ErrorKind.INSUFFICIENT_STOCK
        assert exc.status_code == 409
        assert exc.product_id == 3
        assert exc.to_dict() == {
            "kind": "InsufficientStock",
            "code": None,
            "message": "Insufficient stock or product not found: 3",
            "product_id": 3,
        }

    def test_commit_rejection_carries_product_id(self):
        """commit_order 拒绝时从 hint 取出商品ID"""
        error = StoreError(code="P0001", message="Insufficient stock or product not found: 3", hint="3")

        exc = StoreOperationError.from_store_error(error)

        assert exc.product_id == 3
        assert exc.to_dict() == {
            "kind": "InsufficientStock",
            "code": "P0001",
            "message": "Insufficient stock or product not found: 3",
            "product_id": 3,
        }

    def test_other_errors_have_no_product_id(self):
        exc = StoreOperationError.from_store_error(StoreError(code="23505", message="dup", hint="7"))

        assert "product_id" not in exc.to_dict()

    def test_product_not_found(self):
        exc = InsufficientStockOrNotFound(99, InsufficientStockOrNotFound.NOT_FOUND)

        assert exc.kind == ErrorKind.NOT_FOUND
        assert exc.status_code == 404

    def test_invalid_order(self):
        exc = InvalidOrderError()

        assert exc.status_code == 400
        assert exc.message == "Invalid order data."
