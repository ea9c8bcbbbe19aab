"""
Store access: the HTTP client and its query builder.
"""

from .client import StoreClient, StoreError
from .query import TableQuery


__all__ = ["StoreClient", "StoreError", "TableQuery"]
