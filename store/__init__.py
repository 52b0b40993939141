"""
Persistence backends. Import ConfigStore for typing; build one with create_store.
"""

from store.errors import DuplicateRecordError, StoreError
from store.factory import create_store
from store.memory import InMemoryStore
from store.protocol import ConfigStore

__all__ = ["ConfigStore", "DuplicateRecordError", "InMemoryStore", "StoreError", "create_store"]
