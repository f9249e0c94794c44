"""商品目录服务（只读）"""

import logging
from typing import Any, Dict, List, Optional

from app.db.client import escape_like
from app.services.base import StoreService

logger = logging.getLogger(__name__)


class CatalogService(StoreService):

    def get_all(self) -> List[Dict[str, Any]]:
        return self._run(lambda: self.store.table("products").select().order("id").execute())

    def get_by_id(self, product_id: int) -> Optional[Dict[str, Any]]:
        """查不到返回 None"""
        return self._run(
            lambda: self.store.table("products").select().eq("id", product_id).single().execute(),
            missing_ok=True,
        )

    def get_by_category(self, category: str) -> List[Dict[str, Any]]:
        """分类匹配不区分大小写"""
        products = self._run(
            lambda: self.store.table("products").select().ilike("category", escape_like(category)).order("id").execute()
        )
        logger.debug(f"category={category!r}: {len(products)} products")
        return products
