"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from lifequest.db.repository import ProgressionRepository
from lifequest.gamification.catalog import Catalog

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (repository, catalog, metrics) are injected.
    """

    # Infrastructure dependencies (injected)
    repository: ProgressionRepository
    catalog: Catalog
    metrics: Optional[object] = None  # PrometheusMetrics; None means the global instance

    # Services (lazy-loaded via properties)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from lifequest.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(
                self.repository,
                self.catalog,
                metrics_collector=self.metrics
            )
            logger.debug("GamificationService instantiated")
        return self._gamification_service


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(
    repository: ProgressionRepository,
    catalog: Catalog,
    metrics: Optional[object] = None
) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once at startup after the catalog is loaded.

    Args:
        repository: Storage for progression records
        catalog: Validated catalog
        metrics: Optional PrometheusMetrics instance

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(
        repository=repository,
        catalog=catalog,
        metrics=metrics
    )

    logger.info("Service container initialized")
    return _container
