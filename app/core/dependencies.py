"""依赖注入配置模块"""

from functools import lru_cache

from fastapi import Depends

from app.core.config import settings
from app.db.client import Store
from app.db.session import create_store
from app.services.catalog_service import CatalogService
from app.services.inventory_validator import InventoryValidator
from app.services.order_assembler import OrderAssembler
from app.services.order_service import OrderService


@lru_cache
def get_store() -> Store:
    """获取数据源（进程内单例，启动时按 USE_REMOTE_STORE 选定）"""
    return create_store(settings)


def get_catalog_service(store: Store = Depends(get_store)) -> CatalogService:
    """获取商品目录服务"""
    return CatalogService(store, settings.RETRY_MAX_ATTEMPTS, settings.RETRY_DELAY_MS)


def get_inventory_validator(store: Store = Depends(get_store)) -> InventoryValidator:
    return InventoryValidator(store, settings.RETRY_MAX_ATTEMPTS, settings.RETRY_DELAY_MS)


def get_order_assembler(store: Store = Depends(get_store)) -> OrderAssembler:
    """数据源提供 commit_order 且配置允许时使用原子提交"""
    atomic = settings.ATOMIC_ORDER_COMMIT and store.supports("commit_order")
    return OrderAssembler(
        store,
        settings.RETRY_MAX_ATTEMPTS,
        settings.RETRY_DELAY_MS,
        atomic=atomic,
    )


def get_order_service(
    store: Store = Depends(get_store),
    validator: InventoryValidator = Depends(get_inventory_validator),
    assembler: OrderAssembler = Depends(get_order_assembler),
) -> OrderService:
    """获取订单服务实例（依赖注入）"""
    return OrderService(
        store,
        validator,
        assembler,
        settings.RETRY_MAX_ATTEMPTS,
        settings.RETRY_DELAY_MS,
    )


# 常用的依赖注入别名
StoreDep = Depends(get_store)
CatalogServiceDep = Depends(get_catalog_service)
OrderServiceDep = Depends(get_order_service)
