"""下单前的库存校验"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.core.errors import InsufficientStockOrNotFound
from app.services.base import StoreService
from app.services.pricing import to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedItem:
    """校验通过的订单行，名称和单价为校验时的快照"""
    product_id: int
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class InventoryValidator(StoreService):
    """逐行查询商品并校验库存（只读，不产生副作用）"""

    def _fetch_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        return self._run(
            lambda: self.store.table("products").select().eq("id", product_id).single().execute(),
            missing_ok=True,
        )

    def validate(self, items: Sequence) -> List[ValidatedItem]:
        """按请求顺序校验，第一个失败的商品即中止整个校验

        同一商品出现在多行时按累计数量与库存比较。

        Args:
            items: OrderLineRequest 列表（product_id, quantity）

        Returns:
            与请求一一对应的 ValidatedItem 列表

        Raises:
            InsufficientStockOrNotFound: 商品不存在或库存不足
            StoreOperationError: 查询失败（重试后）
        """
        validated: List[ValidatedItem] = []
        products: Dict[int, Dict[str, Any]] = {}
        requested: Dict[int, int] = {}
        for line in items:
            product = products.get(line.product_id)
            if product is None:
                product = self._fetch_product(line.product_id)
                if product is None:
                    logger.info(f"商品不存在: product_id={line.product_id}")
                    raise InsufficientStockOrNotFound(line.product_id, InsufficientStockOrNotFound.NOT_FOUND)
                products[line.product_id] = product

            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity
            stock = product.get("stock") or 0
            if stock < requested[line.product_id]:
                logger.info(
                    f"库存不足: product_id={line.product_id}, stock={stock}, "
                    f"requested={requested[line.product_id]}"
                )
                raise InsufficientStockOrNotFound(line.product_id)

            validated.append(ValidatedItem(
                product_id=product["id"],
                name=product["name"],
                price=to_money(product["price"]),
                quantity=line.quantity,
            ))
        return validated
