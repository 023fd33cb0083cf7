from campusconnect.store.base import CapacityError, EventStore, RegistrationError
from campusconnect.store.database import DatabaseEventStore
from campusconnect.store.memory import InMemoryEventStore

__all__ = ["CapacityError", "DatabaseEventStore", "EventStore", "InMemoryEventStore", "RegistrationError"]
