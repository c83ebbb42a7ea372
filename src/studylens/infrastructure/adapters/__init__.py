# Infrastructure EventStore Adapters Package
from .file_store import FileEventStore
from .memory_store import InMemoryEventStore

__all__ = ["FileEventStore", "InMemoryEventStore"]
