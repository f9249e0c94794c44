from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import BaseResponse


# ==================== 请求模型 ====================

class OrderLineRequest(BaseModel):
    """订单行"""
    product_id: int = Field(..., gt=0, description="商品ID", examples=[1])
    quantity: int = Field(..., gt=0, description="购买数量", examples=[2])


class CreateOrderRequest(BaseModel):
    """创建订单请求"""
    customer_email: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="下单邮箱",
        examples=["test@example.com"],
    )
    items: List[OrderLineRequest] = Field(
        ...,
        min_length=1,
        description="订单行列表",
    )


# ==================== 响应模型 ====================

class OrderItemSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    product_id: int
    name: str
    price: float
    quantity: int


class OrderSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    customer_email: str
    total_amount: float
    status: str
    created_at: Optional[datetime] = None
    order_items: List[OrderItemSchema] = []


class OrderResponse(BaseResponse):
    data: OrderSchema


class OrderListResponse(BaseResponse):
    data: List[OrderSchema]
