"""订单 API 路由"""

import logging

from fastapi import APIRouter, HTTPException, Path

from app.core.dependencies import OrderServiceDep
from app.schemas.base import ErrorResponse
from app.schemas.order import CreateOrderRequest, OrderListResponse, OrderResponse
from app.services.order_service import OrderService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/orders",
    tags=["订单"],
    responses={
        400: {"model": ErrorResponse, "description": "请求参数错误"},
        404: {"model": ErrorResponse, "description": "资源未找到"},
        409: {"model": ErrorResponse, "description": "库存不足或数据冲突"},
        500: {"model": ErrorResponse, "description": "服务器内部错误"},
    },
)


@router.get(
    "",
    response_model=OrderListResponse,
    summary="订单列表",
)
def list_orders(service: OrderService = OrderServiceDep):
    data = service.get_all()
    return {"success": True, "data": data}


@router.post(
    "",
    response_model=OrderResponse,
    status_code=201,
    summary="创建订单",
    description="""校验库存、计算总额、写入订单和明细并扣减库存。

    **错误码：**
    - 400 请求缺少邮箱或订单行为空
    - 404 商品不存在
    - 409 库存不足 / 订单号冲突
    - 500 数据库错误（重试后仍失败）
    """,
)
def create_order(body: CreateOrderRequest, service: OrderService = OrderServiceDep):
    order = service.create(body.customer_email, body.items)
    logger.info(f"订单已创建: {order['order_number']} ({body.customer_email})")
    return {"success": True, "message": "Order placed successfully!", "data": order}


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="订单详情",
)
def get_order(
    order_id: int = Path(..., description="订单ID", examples=[1]),
    service: OrderService = OrderServiceDep,
):
    data = service.get_by_id(order_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"success": True, "data": data}
