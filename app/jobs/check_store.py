"""数据源连通性检查脚本"""

import argparse
import logging
from app.core.config import settings
from app.db.client import UNDEFINED_TABLE_CODE
from app.db.query import check_connection, execute
from app.db.session import create_store

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TABLES = ("products", "orders", "order_items")

def run_checks(store=None) -> dict:
    """连接测试 + 数据表检查

    Returns:
        {"connection": {...}, "tables": {table: "present" | "missing" | 错误信息}}
    """
    store = store or create_store(settings)
    report = {"connection": check_connection(store), "tables": {}}
    if report["connection"]["status"] != "connected":
        logger.error(f"Connection failed: {report['connection'].get('error')}")
        return report

    for table in TABLES:
        result = execute(lambda table=table: store.table(table).select(head=True).limit(0).execute())
        if result.error is None:
            report["tables"][table] = "present"
            logger.info(f"Table {table!r} is present and accessible ({result.count} rows)")
        elif result.error.code == UNDEFINED_TABLE_CODE:
            report["tables"][table] = "missing"
            logger.error(f"Table {table!r} does not exist")
        else:
            report["tables"][table] = result.error.message
            logger.warning(f"Error checking table {table!r}: {result.error.message}")
    return report

def main():
    parser = argparse.ArgumentParser(description='数据源连通性检查')
    parser.parse_args()

    report = run_checks()
    ok = report["connection"]["status"] == "connected" and all(
        v == "present" for v in report["tables"].values()
    )
    print("✅ 数据源检查通过" if ok else "❌ 数据源检查未通过")
    return 0 if ok else 1

if __name__ == "__main__":
    exit(main())
