"""订单组装与提交"""

import logging
import time
from typing import Any, Callable, Dict, List, Sequence

from app.core.errors import InvalidOrderError, ServiceError
from app.models.order import OrderStatus
from app.services.base import StoreService
from app.services.inventory_validator import ValidatedItem
from app.services.pricing import order_total

logger = logging.getLogger(__name__)


class OrderAssembler(StoreService):
    """计算总额、写订单头和明细、扣减库存

    atomic=True 时调用数据库的 commit_order 函数一次性提交；
    否则按 订单头 -> 明细 -> 扣库存 分步提交。分步提交不是原子的，
    中途失败会留下没有明细或库存未扣减的订单头，这里只记录日志不做补偿。
    """

    def __init__(
        self,
        store,
        max_attempts: int = 3,
        delay_ms: int = 1000,
        atomic: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(store, max_attempts, delay_ms)
        self.atomic = atomic
        self.clock = clock

    def next_order_number(self) -> str:
        # 毫秒级时间戳，同一毫秒内并发下单会撞号
        return f"ORD-{int(self.clock() * 1000)}"

    def create(self, customer_email: str, items: Sequence[ValidatedItem]) -> Dict[str, Any]:
        if not items:
            raise InvalidOrderError()

        header = {
            "order_number": self.next_order_number(),
            "customer_email": customer_email,
            "total_amount": order_total(items),
            "status": OrderStatus.PENDING.value,
        }
        lines = [
            {
                "product_id": item.product_id,
                "name": item.name,
                "price": item.price,
                "quantity": item.quantity,
            }
            for item in items
        ]

        if self.atomic:
            order = self._commit_atomic(header, lines)
        else:
            order = self._commit_sequential(header, lines)

        logger.info(
            f"下单成功: order_id={order['id']}, order_number={order['order_number']}, "
            f"total={order['total_amount']}, items={len(lines)}"
        )
        return order

    def _commit_atomic(self, header: Dict[str, Any], lines: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._run(lambda: self.store.rpc("commit_order", {"order": header, "items": lines}))

    def _commit_sequential(self, header: Dict[str, Any], lines: List[Dict[str, Any]]) -> Dict[str, Any]:
        order = self._run(lambda: self.store.table("orders").insert(header).single().execute())

        committed: List[Dict[str, Any]] = []
        step = "order_items"
        try:
            for line in lines:
                row = dict(line, order_id=order["id"])
                committed.append(self._run(
                    lambda row=row: self.store.table("order_items").insert(row).single().execute()
                ))

            step = "decrement_stock"
            for line in lines:
                params = {"product_id": line["product_id"], "quantity": line["quantity"]}
                self._run(lambda params=params: self.store.rpc("decrement_stock", params))
        except ServiceError as e:
            logger.error(
                f"订单部分提交: order_id={order['id']}, order_number={order['order_number']}, "
                f"failed_step={step}, items_committed={len(committed)}/{len(lines)}, error={e.message}"
            )
            raise

        order["order_items"] = committed
        return order
