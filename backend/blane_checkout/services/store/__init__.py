"""
Key-value persistence for in-flight transactions.
Backends differ (memory, SQL, a browser bridge); TransactionStore puts the
slug-scoped key schema on top of any of them.
"""
from blane_checkout.services.store.base import KeyValueStore
from blane_checkout.services.store.memory import InMemoryStore
from blane_checkout.services.store.scoped import TransactionStore
from blane_checkout.services.store.sql import SqlKeyValueStore

__all__ = [
    "InMemoryStore",
    "KeyValueStore",
    "SqlKeyValueStore",
    "TransactionStore",
]
