"""
Event Store
===========

Read contract plus two implementations:
- memory: InMemoryEventStore (tests, pre-materialized events)
- sql: SqlEventStore (async SQLAlchemy over decision_intel.models)
"""

from decision_intel.store.base import EventStore
from decision_intel.store.memory import InMemoryEventStore
from decision_intel.store.sql import SqlEventStore

__all__ = [
    "EventStore",
    "InMemoryEventStore",
    "SqlEventStore",
]
