"""
Core interfaces and abstract base classes for the Scorebook platform.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .enums import BackendType


@dataclass
class LoadResult:
    """Value read from a backend and whether a record existed."""
    value: Any = None
    found: bool = False


class StorageBackend(ABC):
    """Capability interface shared by every persistence backend."""
    
    # Document stores persist the seed value when a key has no record yet.
    persists_initial_on_absent: bool = False
    
    # Seconds the saving indicator stays up after a write settles.
    saving_indicator_hold: float = 0.0
    
    @property
    @abstractmethod
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        pass
    
    @property
    def is_configured(self) -> bool:
        """Whether the backend has everything it needs to reach its store."""
        return True
    
    @abstractmethod
    async def load(self, key: str) -> LoadResult:
        """Read the record stored under key."""
        pass
    
    @abstractmethod
    async def save(self, key: str, value: Any) -> None:
        """Write value under key, raising on failure."""
        pass


class DocumentClient(ABC):
    """Minimal document database client: one JSON record per (collection, key)."""
    
    @abstractmethod
    def read_one(self, collection: str, key: str) -> Optional[Any]:
        """Return the stored record or None when absent."""
        pass
    
    @abstractmethod
    def write_one(self, collection: str, key: str, value: Any) -> None:
        """Create or replace the record."""
        pass
