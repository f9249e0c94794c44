"""测试配置和 fixtures"""
import pytest
from decimal import Decimal
from unittest.mock import patch

from app.db.base import Base
from app.db.memory_store import MemoryStore
from app.db.session import create_store_engine
from app.db.sql_store import SqlStore


@pytest.fixture
def sample_products():
    """示例商品数据"""
    return [
        {
            "id": 1,
            "name": "测试商品A",
            "price": Decimal("10.00"),
            "description": "库存 5",
            "category": "Electronics",
            "image_url": "https://placehold.co/400",
            "stock": 5,
        },
        {
            "id": 2,
            "name": "测试商品B",
            "price": Decimal("24.99"),
            "description": "库存 10",
            "category": "Apparel",
            "image_url": "https://placehold.co/400",
            "stock": 10,
        },
        {
            "id": 3,
            "name": "测试商品C",
            "price": Decimal("3.35"),
            "description": "库存 1",
            "category": "electronics",
            "image_url": "https://placehold.co/400",
            "stock": 1,
        },
    ]


@pytest.fixture
def memory_store(sample_products):
    """内存数据源"""
    return MemoryStore(products=sample_products)


@pytest.fixture
def sql_store(sample_products):
    """SQLite 内存库上的 SQL 数据源"""
    engine = create_store_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    store = SqlStore(engine)
    result = store.table("products").insert(sample_products).execute()
    assert result.error is None

    try:
        yield store
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """两种数据源实现各跑一遍"""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture(autouse=True)
def no_sleep():
    """重试等待不真正 sleep"""
    with patch("app.db.query.time.sleep") as sleep_mock:
        yield sleep_mock


def stock_of(store, product_id):
    result = store.table("products").select().eq("id", product_id).single().execute()
    assert result.error is None
    return result.data["stock"]


def count_rows(store, table):
    result = store.table(table).select(head=True).execute()
    assert result.error is None
    return result.count
