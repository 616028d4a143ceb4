"""Write batches and LRU caches for an LSM-tree key-value store."""

__version__ = "0.1.0"
__all__ = ["batch", "cache"]