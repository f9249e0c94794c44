"""库存校验单元测试"""
import pytest
from decimal import Decimal
from unittest.mock import Mock

from app.core.errors import ErrorKind, InsufficientStockOrNotFound, StoreOperationError
from app.db.client import QueryResult, StoreError
from app.schemas.order import OrderLineRequest
from app.services.inventory_validator import InventoryValidator, ValidatedItem
from tests.conftest import count_rows, stock_of


def lines(*pairs):
    return [OrderLineRequest(product_id=p, quantity=q) for p, q in pairs]


class TestInventoryValidator:
    """库存校验测试类"""

    def test_validate_success(self, store):
        """测试全部商品库存充足"""
        validator = InventoryValidator(store)

        result = validator.validate(lines((1, 3), (2, 10)))

        assert result == [
            ValidatedItem(product_id=1, name="测试商品A", price=Decimal("10.00"), quantity=3),
            ValidatedItem(product_id=2, name="测试商品B", price=Decimal("24.99"), quantity=10),
        ]

    def test_validate_keeps_request_order(self, store):
        validator = InventoryValidator(store)

        result = validator.validate(lines((3, 1), (1, 1)))

        assert [item.product_id for item in result] == [3, 1]

    def test_stock_equal_to_quantity_passes(self, store):
        """测试库存恰好等于购买数量"""
        validator = InventoryValidator(store)

        result = validator.validate(lines((3, 1)))

        assert result[0].quantity == 1

    def test_insufficient_stock(self, store):
        """测试库存不足"""
        validator = InventoryValidator(store)

        with pytest.raises(InsufficientStockOrNotFound) as exc_info:
            validator.validate(lines((1, 6)))

        assert exc_info.value.product_id == 1
        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_STOCK
        assert exc_info.value.message == "Insufficient stock or product not found: 1"

    def test_product_not_found(self, store):
        """测试商品不存在"""
        validator = InventoryValidator(store)

        with pytest.raises(InsufficientStockOrNotFound) as exc_info:
            validator.validate(lines((999, 1)))

        assert exc_info.value.product_id == 999
        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    def test_repeated_product_uses_cumulative_quantity(self, store):
        """同一商品分两行，累计数量超过库存"""
        validator = InventoryValidator(store)

        with pytest.raises(InsufficientStockOrNotFound) as exc_info:
            validator.validate(lines((2, 1), (1, 3), (1, 3)))

        assert exc_info.value.product_id == 1
        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_STOCK

    def test_repeated_product_within_stock(self, store):
        spy = Mock(wraps=store.table)
        store.table = spy
        validator = InventoryValidator(store)

        result = validator.validate(lines((1, 2), (1, 3)))

        assert [item.quantity for item in result] == [2, 3]
        assert spy.call_count == 1

    def test_first_failure_aborts(self, store):
        """第二行失败时第三行不再查询"""
        spy = Mock(wraps=store.table)
        store.table = spy
        validator = InventoryValidator(store)

        with pytest.raises(InsufficientStockOrNotFound) as exc_info:
            validator.validate(lines((1, 1), (3, 2), (2, 1)))

        assert exc_info.value.product_id == 3
        assert spy.call_count == 2

    def test_validate_has_no_side_effects(self, store):
        validator = InventoryValidator(store)

        validator.validate(lines((1, 5), (2, 1)))

        assert stock_of(store, 1) == 5
        assert stock_of(store, 2) == 10
        assert count_rows(store, "orders") == 0

    def test_price_snapshot_is_money(self):
        """测试单价统一为两位小数"""
        store = Mock()
        store.table.return_value.select.return_value.eq.return_value.single.return_value.execute.return_value = QueryResult(
            data={"id": 7, "name": "浮点价格", "price": 19.999, "stock": 3}
        )
        validator = InventoryValidator(store)

        result = validator.validate(lines((7, 1)))

        assert result[0].price == Decimal("20.00")

    def test_store_failure_propagates(self):
        """查询失败（非 not found）不转换为库存错误"""
        store = Mock()
        store.table.return_value.select.return_value.eq.return_value.single.return_value.execute.return_value = QueryResult(
            error=StoreError(code="08006", message="connection refused")
        )
        validator = InventoryValidator(store, max_attempts=2, delay_ms=10)

        with pytest.raises(StoreOperationError) as exc_info:
            validator.validate(lines((1, 1)))

        assert exc_info.value.kind == ErrorKind.UNKNOWN
        assert store.table.call_count == 2

    def test_line_total(self):
        item = ValidatedItem(product_id=1, name="A", price=Decimal("3.35"), quantity=3)

        assert item.line_total == Decimal("10.05")
