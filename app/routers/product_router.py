"""商品目录 API 路由"""

import logging

from fastapi import APIRouter, HTTPException, Path

from app.core.dependencies import CatalogServiceDep
from app.schemas.base import ErrorResponse
from app.schemas.product import ProductListResponse, ProductResponse
from app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/products",
    tags=["商品目录"],
    responses={
        404: {"model": ErrorResponse, "description": "资源未找到"},
        500: {"model": ErrorResponse, "description": "服务器内部错误"},
    },
)


@router.get(
    "",
    response_model=ProductListResponse,
    summary="商品列表",
)
def list_products(service: CatalogService = CatalogServiceDep):
    data = service.get_all()
    return {"success": True, "data": data}


@router.get(
    "/category/{category}",
    response_model=ProductListResponse,
    summary="按分类查询商品",
    description="分类匹配不区分大小写，没有商品时返回 404。",
)
def list_products_by_category(
    category: str = Path(..., min_length=1, description="商品分类", examples=["electronics"]),
    service: CatalogService = CatalogServiceDep,
):
    data = service.get_by_category(category)
    if not data:
        raise HTTPException(status_code=404, detail=f"No products found in category: {category}")
    return {"success": True, "data": data}


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="商品详情",
)
def get_product(
    product_id: int = Path(..., description="商品ID", examples=[1]),
    service: CatalogService = CatalogServiceDep,
):
    data = service.get_by_id(product_id)
    if data is None:
        raise HTTPException(status_code=404, detail=f"Product with ID {product_id} not found")
    return {"success": True, "data": data}
