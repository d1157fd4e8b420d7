"""Storage boundary for gamification records"""
from lifequest.db.repository import ProgressionRepository
from lifequest.db.memory_store import InMemoryProgressionStore

__all__ = [
    "ProgressionRepository",
    "InMemoryProgressionStore",
]
