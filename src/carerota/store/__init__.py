# carerota/store - Storage boundary used by the validator and swap manager
from .base import RotaStore
from .memory import InMemoryRotaStore
from .sqlite import SqliteRotaStore

__all__ = ["RotaStore", "InMemoryRotaStore", "SqliteRotaStore"]
