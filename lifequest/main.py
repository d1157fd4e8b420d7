"""Main entry point: validate configuration and catalog, wire the services"""
import logging
import sys

from pydantic import ValidationError as SchemaValidationError

from lifequest.config import CATALOG_PATH, LOG_LEVEL, validate_config
from lifequest.db.memory_store import InMemoryProgressionStore
from lifequest.exceptions import LifeQuestError
from lifequest.gamification.catalog import Catalog, build_default_catalog, load_catalog
from lifequest.services.container import init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def load_configured_catalog() -> Catalog:
    """Catalog from CATALOG_PATH, or the built-in one"""
    if CATALOG_PATH is not None:
        logger.info(f"Loading catalog from {CATALOG_PATH}...")
        return load_catalog(CATALOG_PATH)

    logger.info("Loading built-in catalog...")
    return build_default_catalog()


def main() -> int:
    """Application entry point; returns the process exit code"""
    try:
        # Validate configuration
        logger.info("Validating configuration...")
        validate_config()

        catalog = load_configured_catalog()

        container = init_container(InMemoryProgressionStore(), catalog)
        service = container.gamification_service

        active_missions = sum(1 for m in catalog.missions if m.is_active)
        node_count = sum(len(t.nodes) for t in catalog.skill_trees)
        logger.info(
            f"Catalog OK: {active_missions}/{len(catalog.missions)} active missions, "
            f"{len(catalog.skill_trees)} skill trees ({node_count} nodes), "
            f"{len(catalog.rewards)} rewards"
        )
        logger.info(f"{type(service).__name__} ready on {type(service.repository).__name__}")
        return 0

    except LifeQuestError as e:
        # Already logged with full context on creation
        logger.error(f"Startup check failed: {e.message}")
        return 1
    except SchemaValidationError as e:
        logger.error(f"Catalog does not match the schema: {e}")
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
