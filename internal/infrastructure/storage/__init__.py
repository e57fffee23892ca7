"""
Client-local storage package.
"""
from .kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
]
