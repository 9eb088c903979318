"""Domain store interface, implementations and the assistant's adapter."""

from orchestria.store.adapter import StoreAdapter
from orchestria.store.base import CalendarEvent, DomainStore, Project, Task
from orchestria.store.http import HttpStore
from orchestria.store.memory import MemoryStore

__all__ = [
    "CalendarEvent",
    "DomainStore",
    "HttpStore",
    "MemoryStore",
    "Project",
    "StoreAdapter",
    "Task",
]
