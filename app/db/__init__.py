from .base import Base
from .client import QueryResult, Store, StoreError, TableQuery

__all__ = ["Base", "QueryResult", "Store", "StoreError", "TableQuery"]
