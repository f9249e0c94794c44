import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from app.core.config import Settings, settings
from app.db.client import Store
from app.db.memory_store import MemoryStore
from app.db.seed import PRODUCTS
from app.db.sql_store import SqlStore

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(url: str) -> Engine:
    """创建数据库引擎；SQLite 用于本地运行和测试"""
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def create_store(config: Settings = settings, privileged: bool = False) -> Optional[Store]:
    """按配置创建数据源，进程启动时调用一次

    privileged=True 返回特权账号连接（迁移脚本使用），未配置时返回 None。
    """
    if not config.USE_REMOTE_STORE:
        logger.info("Using in-memory fallback dataset")
        return MemoryStore(products=PRODUCTS)

    url = config.admin_database_url if privileged else config.database_url
    if url is None:
        logger.warning("Privileged store not initialized: POSTGRES_ADMIN_USER is missing.")
        return None
    store = SqlStore(create_store_engine(url))
    logger.info(f"Using remote store ({store.kind})")
    return store
