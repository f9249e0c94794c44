"""远程数据库数据源（SQLAlchemy 实现）"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError

import app.models  # noqa: F401  注册表结构
from app.db.base import Base
from app.db.client import (
    CHECK_VIOLATION_CODE,
    CONNECTION_FAILURE_CODE,
    FOREIGN_KEY_VIOLATION_CODE,
    INTERNAL_ERROR_CODE,
    LIKE_ESCAPE,
    RAISE_EXCEPTION_CODE,
    UNDEFINED_TABLE_CODE,
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

UNDEFINED_COLUMN_CODE = "42703"

# SQLite 驱动不提供 SQLSTATE，按错误信息匹配
_SQLITE_MESSAGES = (
    ("unique constraint failed", UNIQUE_VIOLATION_CODE),
    ("foreign key constraint failed", FOREIGN_KEY_VIOLATION_CODE),
    ("check constraint failed", CHECK_VIOLATION_CODE),
    ("no such table", UNDEFINED_TABLE_CODE),
)


def _sqlstate(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code
    text = str(orig if orig is not None else exc).lower()
    for needle, mapped in _SQLITE_MESSAGES:
        if needle in text:
            return mapped
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return CONNECTION_FAILURE_CODE
    return INTERNAL_ERROR_CODE


def to_store_error(exc: Exception) -> StoreError:
    """把 SQLAlchemy/驱动异常转换为数据源错误"""
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc).strip().splitlines()[0]
    return StoreError(code=_sqlstate(exc), message=message, details=type(exc).__name__)


class _Rejected(Exception):
    """服务端函数主动拒绝，需要回滚事务"""

    def __init__(self, error: StoreError):
        super().__init__(error.message)
        self.error = error


class SqlStore(Store):
    """基于 SQLAlchemy Core 的数据源，每次操作一个独立事务

    服务端函数:
      - decrement_stock: 无条件扣减库存
      - commit_order: 在单个事务内写订单头、订单明细并条件扣减库存
    """

    functions = frozenset({"decrement_stock", "commit_order"})

    def __init__(self, engine: Engine):
        self.engine = engine
        self.kind = engine.dialect.name

    def _table(self, name: str) -> Optional[Table]:
        return Base.metadata.tables.get(name)

    # ---------- 查询执行 ----------

    def run(self, query: TableQuery) -> QueryResult:
        table = self._table(query.table)
        if table is None:
            return QueryResult(error=undefined_table(query.table))
        try:
            with self.engine.begin() as conn:
                if query.action == "select" and query.head:
                    stmt = select(func.count()).select_from(table).where(*self._where(table, query.filters))
                    return QueryResult(data=None, count=conn.execute(stmt).scalar_one())
                if query.action == "select":
                    rows = self._select(conn, table, query)
                elif query.action == "insert":
                    rows = [self._insert_one(conn, table, row) for row in query.rows()]
                elif query.action == "update":
                    stmt = (
                        update(table)
                        .where(*self._where(table, query.filters))
                        .values(**(query.payload or {}))
                        .returning(*table.c)
                    )
                    rows = [dict(r) for r in conn.execute(stmt).mappings()]
                elif query.action == "upsert":
                    rows = [self._upsert_one(conn, table, row, query.on_conflict or "id") for row in query.rows()]
                elif query.action == "delete":
                    stmt = delete(table).where(*self._where(table, query.filters)).returning(*table.c)
                    rows = [dict(r) for r in conn.execute(stmt).mappings()]
                else:
                    raise ValueError(f"unsupported action: {query.action}")
        except _Rejected as e:
            return QueryResult(error=e.error)
        except SQLAlchemyError as e:
            logger.debug(f"query failed: {query!r}: {e}")
            return QueryResult(error=to_store_error(e))
        return shape(query, rows)

    def rpc(self, function: str, params: Dict[str, Any]) -> QueryResult:
        handlers = {
            "decrement_stock": self._decrement_stock,
            "commit_order": self._commit_order,
        }
        handler = handlers.get(function)
        if handler is None:
            return QueryResult(error=unknown_function(function))
        try:
            with self.engine.begin() as conn:
                return handler(conn, **params)
        except _Rejected as e:
            return QueryResult(error=e.error)
        except SQLAlchemyError as e:
            logger.debug(f"rpc {function} failed: {e}")
            return QueryResult(error=to_store_error(e))

    def close(self) -> None:
        self.engine.dispose()

    # ---------- 语句构造 ----------

    def _column(self, table: Table, name: str):
        if name not in table.c:
            raise _Rejected(StoreError(
                code=UNDEFINED_COLUMN_CODE,
                message=f"column {table.name}.{name} does not exist",
            ))
        return table.c[name]

    def _where(self, table: Table, filters) -> list:
        clauses = []
        for op, column, value in filters:
            col = self._column(table, column)
            if op == "eq":
                clauses.append(col == value)
            elif op == "gte":
                clauses.append(col >= value)
            elif op == "ilike":
                clauses.append(col.ilike(value, escape=LIKE_ESCAPE))
        return clauses

    def _select(self, conn: Connection, table: Table, query: TableQuery) -> List[Row]:
        stmt = select(table).where(*self._where(table, query.filters))
        if query.order_by:
            column, desc = query.order_by
            col = self._column(table, column)
            stmt = stmt.order_by(col.desc() if desc else col)
        else:
            stmt = stmt.order_by(table.c.id)
        if query.limit_count is not None:
            stmt = stmt.limit(query.limit_count)
        rows = [dict(r) for r in conn.execute(stmt).mappings()]

        for child_name, foreign_key in query.embeds:
            child = self._table(child_name)
            if child is None:
                raise _Rejected(undefined_table(child_name))
            fk = self._column(child, foreign_key)
            ids = [r["id"] for r in rows]
            grouped: Dict[Any, List[Row]] = {i: [] for i in ids}
            if ids:
                children = conn.execute(select(child).where(fk.in_(ids)).order_by(child.c.id)).mappings()
                for c in children:
                    grouped[c[foreign_key]].append(dict(c))
            for r in rows:
                r[child_name] = grouped[r["id"]]
        return rows

    def _insert_one(self, conn: Connection, table: Table, row: Row) -> Row:
        stmt = insert(table).values(**row).returning(*table.c)
        return dict(conn.execute(stmt).mappings().one())

    def _upsert_one(self, conn: Connection, table: Table, row: Row, on_conflict: str) -> Row:
        key = row.get(on_conflict)
        if key is not None:
            stmt = (
                update(table)
                .where(self._column(table, on_conflict) == key)
                .values(**row)
                .returning(*table.c)
            )
            existing = conn.execute(stmt).mappings().first()
            if existing is not None:
                return dict(existing)
        return self._insert_one(conn, table, row)

    # ---------- 服务端函数 ----------

    def _decrement_stock(self, conn: Connection, product_id: int, quantity: int) -> QueryResult:
        products = self._table("products")
        stmt = (
            update(products)
            .where(products.c.id == product_id)
            .values(stock=products.c.stock - quantity)
            .returning(*products.c)
        )
        row = conn.execute(stmt).mappings().first()
        if row is None:
            raise _Rejected(not_found("products", 0))
        return QueryResult(data=dict(row), count=1)

    def _commit_order(self, conn: Connection, order: Row, items: List[Row]) -> QueryResult:
        orders = self._table("orders")
        order_items = self._table("order_items")
        products = self._table("products")

        header = self._insert_one(conn, orders, order)
        committed = [
            self._insert_one(conn, order_items, dict(item, order_id=header["id"]))
            for item in items
        ]

        # 条件扣减: stock >= quantity 才更新，受影响行数为 0 即整单回滚
        for item in items:
            stmt = (
                update(products)
                .where(
                    products.c.id == item["product_id"],
                    products.c.stock >= item["quantity"],
                )
                .values(stock=products.c.stock - item["quantity"])
            )
            if conn.execute(stmt).rowcount != 1:
                raise _Rejected(StoreError(
                    code=RAISE_EXCEPTION_CODE,
                    message=f"Insufficient stock or product not found: {item['product_id']}",
                    details=f"commit_order rolled back for {order.get('order_number')}",
                    hint=str(item["product_id"]),
                ))

        header["order_items"] = committed
        return QueryResult(data=header, count=1)
