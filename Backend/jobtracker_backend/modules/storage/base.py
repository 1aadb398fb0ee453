from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class StorageService(ABC):
    """Base interface for all storage models. Rows are keyed by an integer surrogate id."""

    @abstractmethod
    async def get(self, key: int) -> Optional[Dict]:
        """Get a single row by key"""
        pass

    @abstractmethod
    async def insert(self, value: Dict) -> int:
        """Insert a row, assigning a new key when its key is 0. Returns the key."""
        pass

    @abstractmethod
    async def update(self, key: int, value: Dict) -> bool:
        """Update an existing row. Returns False when the key is unknown."""
        pass

    @abstractmethod
    async def delete(self, key: int) -> None:
        """Delete a single row"""
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        """Delete every row"""
        pass

    @abstractmethod
    async def query(self, filter_params: Dict = None) -> List[Dict]:
        """Query rows with optional equality filters"""
        pass

    @abstractmethod
    async def get_all(self) -> List[Dict]:
        """Get all rows"""
        pass
