"""订单服务（路由层唯一入口）"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from app.core.errors import InvalidOrderError
from app.services.base import StoreService
from app.services.inventory_validator import InventoryValidator
from app.services.order_assembler import OrderAssembler

logger = logging.getLogger(__name__)


class OrderService(StoreService):

    def __init__(
        self,
        store,
        validator: InventoryValidator,
        assembler: OrderAssembler,
        max_attempts: int = 3,
        delay_ms: int = 1000,
    ):
        super().__init__(store, max_attempts, delay_ms)
        self.validator = validator
        self.assembler = assembler

    def get_all(self) -> List[Dict[str, Any]]:
        return self._run(
            lambda: self.store.table("orders").select().embed("order_items", "order_id").order("id").execute()
        )

    def get_by_id(self, order_id: int) -> Optional[Dict[str, Any]]:
        return self._run(
            lambda: self.store.table("orders").select().embed("order_items", "order_id").eq("id", order_id).single().execute(),
            missing_ok=True,
        )

    def create(self, customer_email: str, items: Sequence) -> Dict[str, Any]:
        """校验库存后提交订单，返回订单及其明细"""
        if not customer_email or not items:
            raise InvalidOrderError()

        validated = self.validator.validate(items)
        return self.assembler.create(customer_email, validated)
