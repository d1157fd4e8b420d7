"""
Service Layer Package

Business logic services sitting between a transport layer (HTTP handlers,
bots) and the storage boundary in lifequest.db.

Core Services:
- GamificationService: progression, missions, skill trees, rewards
"""

from lifequest.services.container import ServiceContainer, get_container, init_container
from lifequest.services.gamification_service import GamificationService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "GamificationService",
]
