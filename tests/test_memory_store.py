"""内存数据源测试"""
from app.db.memory_store import MemoryStore
from app.db.seed import PRODUCTS
from tests.conftest import stock_of


class TestMemoryStore:

    def test_seeded_from_fallback_dataset(self):
        store = MemoryStore(products=PRODUCTS)

        result = store.table("products").select().execute()

        assert len(result.data) == len(PRODUCTS)
        assert store.kind == "memory"

    def test_only_decrement_function(self, memory_store):
        assert memory_store.supports("decrement_stock")
        assert not memory_store.supports("commit_order")

    def test_decrement_is_unconditional(self, memory_store):
        """没有库存检查约束，扣减可以变成负数"""
        result = memory_store.rpc("decrement_stock", {"product_id": 3, "quantity": 2})

        assert result.error is None
        assert stock_of(memory_store, 3) == -1

    def test_results_are_copies(self, memory_store):
        product = memory_store.table("products").select().eq("id", 1).single().execute().data
        product["stock"] = 0

        assert stock_of(memory_store, 1) == 5

    def test_sequence_continues_after_seed(self, memory_store):
        result = memory_store.table("products").insert({"name": "新商品", "price": 1, "stock": 1}).single().execute()

        assert result.data["id"] == 4

    def test_batch_insert_is_all_or_nothing(self, memory_store):
        result = memory_store.table("products").insert([
            {"id": 20, "name": "ok", "price": 1, "stock": 1},
            {"id": 1, "name": "duplicate", "price": 1, "stock": 1},
        ]).execute()

        assert result.error.code == "23505"
        assert memory_store.table("products").select().eq("id", 20).execute().data == []
