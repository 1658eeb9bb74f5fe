"""
Sales record storage backends.
"""

from .sales_store import (
    FileSalesStore,
    InMemorySalesStore,
    JsonFileSalesStore,
    ParquetFileSalesStore,
    SalesStore,
    StoreError,
    create_store,
)

__all__ = [
    "SalesStore",
    "InMemorySalesStore",
    "FileSalesStore",
    "JsonFileSalesStore",
    "ParquetFileSalesStore",
    "StoreError",
    "create_store",
]
