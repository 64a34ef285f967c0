"""
Persistence module: storage backends and the stores behind them.
"""

from .database import DatabaseManager, SQLiteDatabase, PostgreSQLDatabase, DatabaseFactory
from .documents import SQLDocumentClient
from .local_store import LocalKeyValueStore
from .backends import (
    LocalBackend, DocumentStoreBackend, SpreadsheetEndpointBackend, BackendFactory
)

__all__ = [
    "DatabaseManager",
    "SQLiteDatabase",
    "PostgreSQLDatabase",
    "DatabaseFactory",
    "SQLDocumentClient",
    "LocalKeyValueStore",
    "LocalBackend",
    "DocumentStoreBackend",
    "SpreadsheetEndpointBackend",
    "BackendFactory",
]
