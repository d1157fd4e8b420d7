"""Configuration management"""
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from lifequest.exceptions import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Progression
# LifeScore given to a brand-new user record (clamped to [0, 1000] on use)
STARTING_LIFESCORE_RAW: str = os.getenv("STARTING_LIFESCORE", "0")

# Catalog
# Empty means the built-in catalog from lifequest.gamification.catalog
CATALOG_PATH: Optional[Path] = Path(os.getenv("CATALOG_PATH")) if os.getenv("CATALOG_PATH") else None

# Monitoring
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "true").lower() == "true"


def get_starting_lifescore() -> int:
    """Seeded LifeScore for new users, 0 when unset or unparsable"""
    try:
        value = int(STARTING_LIFESCORE_RAW)
    except ValueError:
        return 0
    return min(max(value, 0), 1000)


# Validation
def validate_config() -> None:
    """Validate configuration"""
    if LOG_LEVEL.upper() not in logging.getLevelNamesMapping():
        raise ConfigurationError(
            message=f"Unknown LOG_LEVEL: {LOG_LEVEL}",
            config_key="LOG_LEVEL",
        )

    try:
        starting = int(STARTING_LIFESCORE_RAW)
    except ValueError:
        raise ConfigurationError(
            message=f"STARTING_LIFESCORE must be an integer, got {STARTING_LIFESCORE_RAW!r}",
            config_key="STARTING_LIFESCORE",
        )
    if not 0 <= starting <= 1000:
        raise ConfigurationError(
            message=f"STARTING_LIFESCORE must be within [0, 1000], got {starting}",
            config_key="STARTING_LIFESCORE",
        )

    if CATALOG_PATH is not None and not CATALOG_PATH.is_file():
        raise ConfigurationError(
            message=f"CATALOG_PATH does not exist: {CATALOG_PATH}",
            config_key="CATALOG_PATH",
        )
