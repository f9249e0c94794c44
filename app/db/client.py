"""远程数据源客户端接口

业务层只通过这里定义的表级查询构造器访问数据，
具体执行由 SqlStore（远程数据库）或 MemoryStore（内存数据集）完成。
每次执行都返回 (data, error) 结构，数据源报告的错误不会抛异常。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

# 数据源错误码（PostgreSQL SQLSTATE / PostgREST 约定）
NOT_FOUND_CODE = "PGRST116"
UNKNOWN_FUNCTION_CODE = "PGRST202"
UNIQUE_VIOLATION_CODE = "23505"
FOREIGN_KEY_VIOLATION_CODE = "23503"
CHECK_VIOLATION_CODE = "23514"
UNDEFINED_TABLE_CODE = "42P01"
RAISE_EXCEPTION_CODE = "P0001"
CONNECTION_FAILURE_CODE = "08006"
INTERNAL_ERROR_CODE = "XX000"
CLIENT_ERROR_CODE = "CLIENT_ERROR"

Row = Dict[str, Any]


@dataclass
class StoreError:
    """数据源返回的错误"""
    code: str
    message: str
    details: Optional[str] = None
    hint: Optional[str] = None


class QueryResult(NamedTuple):
    data: Any = None
    error: Optional[StoreError] = None
    count: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def not_found(table: str, rows: int) -> StoreError:
    return StoreError(
        code=NOT_FOUND_CODE,
        message="JSON object requested, multiple (or no) rows returned",
        details=f"The result contains {rows} rows ({table})",
    )


def undefined_table(table: str) -> StoreError:
    return StoreError(
        code=UNDEFINED_TABLE_CODE,
        message=f'relation "{table}" does not exist',
    )


def unknown_function(function: str) -> StoreError:
    return StoreError(
        code=UNKNOWN_FUNCTION_CODE,
        message=f"Could not find the function {function}",
    )


LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """把 \\ % _ 转义为字面量，ilike(escape_like(v)) 即不区分大小写的相等匹配"""
    return "".join(LIKE_ESCAPE + ch if ch in ("\\", "%", "_") else ch for ch in value)


class TableQuery:
    """表级查询构造器

    用法与 PostgREST 客户端一致:
        store.table("products").select().eq("id", 1).single().execute()
    """

    def __init__(self, store: "Store", table: str):
        self.store = store
        self.table = table
        self.action = "select"
        self.payload: Union[Row, List[Row], None] = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Tuple[str, str, Any]] = []
        self.embeds: List[Tuple[str, str]] = []
        self.order_by: Optional[Tuple[str, bool]] = None
        self.limit_count: Optional[int] = None
        self.expect_single = False
        self.head = False

    # ---------- 动作 ----------

    def select(self, head: bool = False) -> "TableQuery":
        """查询；head=True 时只返回 count 不返回数据"""
        self.action = "select"
        self.head = head
        return self

    def insert(self, rows: Union[Row, List[Row]]) -> "TableQuery":
        self.action = "insert"
        self.payload = rows
        return self

    def update(self, values: Row) -> "TableQuery":
        self.action = "update"
        self.payload = values
        return self

    def upsert(self, rows: Union[Row, List[Row]], on_conflict: str = "id") -> "TableQuery":
        self.action = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        return self

    def delete(self) -> "TableQuery":
        self.action = "delete"
        return self

    # ---------- 过滤与修饰 ----------

    def eq(self, column: str, value: Any) -> "TableQuery":
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column: str, value: Any) -> "TableQuery":
        self.filters.append(("gte", column, value))
        return self

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        """% 匹配任意串, _ 匹配单个字符, \\ 转义"""
        self.filters.append(("ilike", column, pattern))
        return self

    def order(self, column: str, desc: bool = False) -> "TableQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, count: int) -> "TableQuery":
        self.limit_count = count
        return self

    def embed(self, child_table: str, foreign_key: str) -> "TableQuery":
        """把子表中 foreign_key 指向本行 id 的记录挂到 row[child_table]"""
        self.embeds.append((child_table, foreign_key))
        return self

    def single(self) -> "TableQuery":
        self.expect_single = True
        return self

    def rows(self) -> List[Row]:
        if self.payload is None:
            return []
        if isinstance(self.payload, dict):
            return [self.payload]
        return list(self.payload)

    def execute(self) -> QueryResult:
        return self.store.run(self)

    def __repr__(self) -> str:
        return f"<TableQuery {self.action} {self.table} filters={self.filters}>"


def shape(query: TableQuery, rows: List[Row]) -> QueryResult:
    """按 single()/head 要求整理结果"""
    if query.head:
        return QueryResult(data=None, count=len(rows))
    if query.expect_single:
        if len(rows) != 1:
            return QueryResult(error=not_found(query.table, len(rows)))
        return QueryResult(data=rows[0], count=1)
    return QueryResult(data=rows, count=len(rows))


class Store(ABC):
    """数据源接口（远程数据库 / 内存数据集两种实现）"""

    kind = "abstract"
    functions: frozenset = frozenset()

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    def supports(self, function: str) -> bool:
        return function in self.functions

    @abstractmethod
    def run(self, query: TableQuery) -> QueryResult:
        """执行一次查询"""

    @abstractmethod
    def rpc(self, function: str, params: Dict[str, Any]) -> QueryResult:
        """调用服务端函数"""

    def close(self) -> None:
        pass
