"""Domain interfaces for test data persistence and cleanup."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence


Registry = Dict[str, List[Dict[str, Any]]]


class DataStore(ABC):
    """Category-scoped JSON persistence."""

    @abstractmethod
    def ensure_categories(self, categories: Sequence[str]) -> None: pass
    @abstractmethod
    def exists(self, category: str, name: str) -> bool: pass
    @abstractmethod
    def read(self, category: str, name: str) -> Any: pass
    @abstractmethod
    def write(self, category: str, name: str, data: Any) -> str: pass
    @abstractmethod
    def write_csv(self, category: str, name: str, rows: List[Dict[str, Any]]) -> str: pass
    @abstractmethod
    def list_names(self, category: str) -> List[str]: pass
    @abstractmethod
    def clear_category(self, category: str) -> int: pass


class CleanupBackend(ABC):
    """Removes generated test data from an external system."""

    name: str = "backend"

    @abstractmethod
    async def cleanup(self, registry: Registry) -> None:
        """Remove the entities in `registry`. Failures may raise; callers log them."""
        ...
