"""Storage adapters."""

from memecast.adapters.storage.json_store import JsonStorage

__all__ = ["JsonStorage"]
