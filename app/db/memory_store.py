"""内存数据源（未接入远程数据库时的后备实现）"""

import copy
import logging
import re
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.db.client import (
    FOREIGN_KEY_VIOLATION_CODE,
    LIKE_ESCAPE,
    UNIQUE_VIOLATION_CODE,
    QueryResult,
    Row,
    Store,
    StoreError,
    TableQuery,
    not_found,
    shape,
    undefined_table,
    unknown_function,
)

logger = logging.getLogger(__name__)


# 与 app.models 中的表结构保持一致的约束描述
SCHEMA: Dict[str, Dict[str, Any]] = {
    "products": {
        "defaults": {"description": None, "category": None, "image_url": None, "stock": 0},
        "unique": ("id",),
        "foreign_keys": {},
    },
    "orders": {
        "defaults": {"status": "pending"},
        "unique": ("id", "order_number"),
        "foreign_keys": {},
    },
    "order_items": {
        "defaults": {},
        "unique": ("id",),
        # column -> (referenced table, on delete cascade)
        "foreign_keys": {
            "order_id": ("orders", True),
            "product_id": ("products", False),
        },
    },
}


class _Violation(Exception):
    def __init__(self, error: StoreError):
        super().__init__(error.message)
        self.error = error


def _like(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    parts = []
    escaped = False
    for ch in pattern:
        if escaped:
            parts.append(re.escape(ch))
            escaped = False
        elif ch == LIKE_ESCAPE:
            escaped = True
        elif ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    if escaped:
        parts.append(re.escape(LIKE_ESCAPE))
    return re.fullmatch("".join(parts), str(value), re.IGNORECASE | re.DOTALL) is not None


def _matches(row: Row, filters) -> bool:
    for op, column, value in filters:
        current = row.get(column)
        if op == "eq":
            if current != value and str(current) != str(value):
                return False
        elif op == "gte":
            if current is None or current < value:
                return False
        elif op == "ilike":
            if not _like(current, value):
                return False
    return True


class MemoryStore(Store):
    """进程内数据集，实现与 SqlStore 相同的查询接口

    只提供 decrement_stock 函数，没有原子的 commit_order，
    下单时走非原子的分步提交流程。
    """

    kind = "memory"
    functions = frozenset({"decrement_stock"})

    def __init__(
        self,
        products: Optional[Iterable[Row]] = None,
        orders: Optional[Iterable[Row]] = None,
        order_items: Optional[Iterable[Row]] = None,
    ):
        self._lock = threading.RLock()
        self._tables: Dict[str, List[Row]] = {name: [] for name in SCHEMA}
        self._sequences: Dict[str, int] = {name: 0 for name in SCHEMA}
        for name, rows in (("products", products), ("orders", orders), ("order_items", order_items)):
            if rows:
                self._insert(name, [dict(r) for r in rows])

    # ---------- 查询执行 ----------

    def run(self, query: TableQuery) -> QueryResult:
        if query.table not in self._tables:
            return QueryResult(error=undefined_table(query.table))
        with self._lock:
            try:
                if query.action == "select":
                    rows = self._select(query)
                elif query.action == "insert":
                    rows = self._insert(query.table, query.rows())
                elif query.action == "update":
                    rows = self._update(query.table, query.filters, query.payload or {})
                elif query.action == "upsert":
                    rows = self._upsert(query.table, query.rows(), query.on_conflict or "id")
                elif query.action == "delete":
                    rows = self._delete(query.table, query.filters)
                else:
                    raise ValueError(f"unsupported action: {query.action}")
            except _Violation as e:
                return QueryResult(error=e.error)
            return shape(query, copy.deepcopy(rows))

    def rpc(self, function: str, params: Dict[str, Any]) -> QueryResult:
        if function != "decrement_stock":
            return QueryResult(error=unknown_function(function))
        with self._lock:
            product = self._find("products", params["product_id"])
            if product is None:
                return QueryResult(error=not_found("products", 0))
            # 无条件扣减，不检查剩余库存
            product["stock"] = product.get("stock", 0) - int(params["quantity"])
            logger.debug(f"decrement_stock: product_id={product['id']}, stock={product['stock']}")
            return QueryResult(data=dict(product), count=1)

    # ---------- 内部实现 ----------

    def _find(self, table: str, row_id: Any) -> Optional[Row]:
        for row in self._tables[table]:
            if str(row["id"]) == str(row_id):
                return row
        return None

    def _select(self, query: TableQuery) -> List[Row]:
        rows = [r for r in self._tables[query.table] if _matches(r, query.filters)]
        if query.order_by:
            column, desc = query.order_by
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if query.limit_count is not None and not query.head:
            rows = rows[:query.limit_count]
        out = [dict(r) for r in rows]
        for child_table, foreign_key in query.embeds:
            if child_table not in self._tables:
                raise _Violation(undefined_table(child_table))
            for row in out:
                row[child_table] = [
                    dict(c) for c in self._tables[child_table]
                    if c.get(foreign_key) == row["id"]
                ]
        return out

    def _check(self, table: str, row: Row, existing: List[Row]) -> None:
        spec = SCHEMA[table]
        for column in spec["unique"]:
            value = row.get(column)
            if value is None:
                continue
            for other in existing:
                if other is not row and other.get(column) == value:
                    raise _Violation(StoreError(
                        code=UNIQUE_VIOLATION_CODE,
                        message=f'duplicate key value violates unique constraint "{table}_{column}_key"',
                        details=f"Key ({column})=({value}) already exists.",
                    ))
        for column, (target, _cascade) in spec["foreign_keys"].items():
            value = row.get(column)
            if value is not None and self._find(target, value) is None:
                raise _Violation(StoreError(
                    code=FOREIGN_KEY_VIOLATION_CODE,
                    message=f'insert or update on table "{table}" violates foreign key constraint "{table}_{column}_fkey"',
                    details=f'Key ({column})=({value}) is not present in table "{target}".',
                ))

    def _insert(self, table: str, rows: List[Row]) -> List[Row]:
        spec = SCHEMA[table]
        staged: List[Row] = []
        sequence = self._sequences[table]
        for payload in rows:
            row = dict(spec["defaults"])
            row.update(payload)
            if row.get("id") is None:
                sequence += 1
                row["id"] = sequence
            else:
                sequence = max(sequence, int(row["id"]))
            if table == "orders" and row.get("created_at") is None:
                row["created_at"] = datetime.now(timezone.utc)
            self._check(table, row, self._tables[table] + staged)
            staged.append(row)
        self._tables[table].extend(staged)
        self._sequences[table] = sequence
        return staged

    def _update(self, table: str, filters, values: Row) -> List[Row]:
        targets = [r for r in self._tables[table] if _matches(r, filters)]
        updated = []
        for row in targets:
            candidate = dict(row)
            candidate.update(values)
            others = [r for r in self._tables[table] if r is not row]
            self._check(table, candidate, others)
            updated.append((row, candidate))
        for row, candidate in updated:
            row.update(candidate)
        return [row for row, _ in updated]

    def _upsert(self, table: str, rows: List[Row], on_conflict: str) -> List[Row]:
        out = []
        for payload in rows:
            key = payload.get(on_conflict)
            existing = [r for r in self._tables[table] if key is not None and r.get(on_conflict) == key]
            if existing:
                out.extend(self._update(table, [("eq", on_conflict, key)], payload))
            else:
                out.extend(self._insert(table, [payload]))
        return out

    def _delete(self, table: str, filters) -> List[Row]:
        targets = [r for r in self._tables[table] if _matches(r, filters)]
        ids = {r["id"] for r in targets}
        for child, spec in SCHEMA.items():
            for column, (target, cascade) in spec["foreign_keys"].items():
                if target != table:
                    continue
                referencing = [c for c in self._tables[child] if c.get(column) in ids]
                if referencing and not cascade:
                    raise _Violation(StoreError(
                        code=FOREIGN_KEY_VIOLATION_CODE,
                        message=f'update or delete on table "{table}" violates foreign key constraint "{child}_{column}_fkey" on table "{child}"',
                    ))
                if referencing:
                    self._tables[child] = [c for c in self._tables[child] if c.get(column) not in ids]
        self._tables[table] = [r for r in self._tables[table] if r["id"] not in ids]
        return targets
