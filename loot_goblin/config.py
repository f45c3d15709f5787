"""
Single place for default adventure configuration.
Change DEFAULT_CATALOG_ID to switch which content catalog new adventures use (when no catalog_id is provided).
"""

import logging
import os

# Catalog id from data/catalogs/<id>/. This is the default for new adventures.
DEFAULT_CATALOG_ID = "default"

# Round budget for a new adventure (one round = every goblin in the turn order takes one turn)
DEFAULT_NUM_ROUNDS = 10
MAX_NUM_ROUNDS = 255

# 1-in-N chance that a camp rummage gets caught; 0 = rummaging never fails
DEFAULT_RUMMAGE_FAIL_ODDS = 0

# "weighted" uses declared outcome weights; "uniform" ignores them
OUTCOME_SAMPLING = "weighted"

# Save slots per creator
SAVE_SLOTS = 3

LOG_LEVEL = os.environ.get("LOOT_GOBLIN_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Include tracebacks in 500 responses (local development only)
DEBUG = os.environ.get("LOOT_GOBLIN_DEBUG", "").lower() in ("1", "true", "yes")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for scripts and the API server."""
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
