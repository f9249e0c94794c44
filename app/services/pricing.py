from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """金额统一为两位小数的 Decimal"""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def order_total(items: Iterable) -> Decimal:
    """订单总额 = round(Σ 单价 × 数量, 2)"""
    total = sum((to_money(item.price) * item.quantity for item in items), Decimal("0"))
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)
