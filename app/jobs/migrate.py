"""商品数据迁移脚本: 把初始商品目录写入远程数据库"""

import argparse
import logging
from app.core.config import settings
from app.db.base import Base
from app.db.query import with_retry
from app.db.seed import PRODUCTS
from app.db.session import create_store

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def run_migration(create_tables: bool = False, dry_run: bool = False, store=None) -> int:
    """按 id upsert 初始商品

    Args:
        create_tables: 是否先建表（仅 SQL 数据源）
        dry_run: 试运行模式，只列出将要写入的商品
        store: 指定数据源，默认使用特权账号连接

    Returns:
        成功写入的商品数量
    """
    if dry_run:
        for product in PRODUCTS:
            logger.info(f"[dry-run] product {product['id']}: {product['name']}")
        return len(PRODUCTS)

    store = store or create_store(settings, privileged=True)
    if store is None:
        raise RuntimeError("Privileged store not initialized. Check POSTGRES_ADMIN_USER / POSTGRES_ADMIN_PASSWORD.")

    if create_tables:
        engine = getattr(store, "engine", None)
        if engine is None:
            logger.warning("create-tables ignored: store has no SQL engine")
        else:
            Base.metadata.create_all(engine)
            logger.info("Tables created (products, orders, order_items)")

    migrated = 0
    for product in PRODUCTS:
        logger.info(f"Migrating product: {product['name']}...")
        result = with_retry(
            lambda product=product: store.table("products").upsert(product, on_conflict="id").execute(),
            settings.RETRY_MAX_ATTEMPTS,
            settings.RETRY_DELAY_MS,
        )
        if result.error:
            logger.error(f"Failed to migrate {product['name']}: [{result.error.code}] {result.error.message}")
        else:
            logger.info(f"Successfully migrated {product['name']}")
            migrated += 1

    logger.info(f"Migration finished: {migrated}/{len(PRODUCTS)} products")
    return migrated

def main():
    """主函数"""
    parser = argparse.ArgumentParser(description='商品数据迁移工具')
    parser.add_argument(
        '--create-tables',
        action='store_true',
        help='迁移前创建数据表'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='试运行模式，只列出不写入'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        count = run_migration(args.create_tables, args.dry_run)
        print(f"✅ 迁移完成：写入 {count} 个商品")
    except Exception as e:
        print(f"❌ 执行失败: {str(e)}")
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
