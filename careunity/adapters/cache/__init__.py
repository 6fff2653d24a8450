"""Cache storage adapters."""

from .memory_storage import MemoryCacheRegistry, MemoryCacheStorage

__all__ = ["MemoryCacheRegistry", "MemoryCacheStorage"]
