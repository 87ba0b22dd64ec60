"""Signal stores and caches."""

from signal_service.storage.history_cache import HistoryCache
from signal_service.storage.memory_store import InMemorySignalStore

__all__ = ["HistoryCache", "InMemorySignalStore"]
