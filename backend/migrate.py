# backend/migrate.py
# Runs the database migrations without starting the API:
#   python backend/migrate.py
import logging
import os
import sys

from sqlalchemy.exc import SQLAlchemyError

# Add 'backend' folder to Python path
sys.path.insert(0, os.path.realpath(os.path.dirname(__file__)))

from config import settings
from utils.errors import ConfigurationError, MigrationError
from utils.logging_config import setup_logging
from utils.migrations import run_database_migrations

logger = logging.getLogger("migrate")


def main() -> int:
    setup_logging(settings.LOG_LEVEL)
    try:
        executed = run_database_migrations(settings, skip_if_no_new_migrations=False)
    except (ConfigurationError, MigrationError, SQLAlchemyError, OSError) as e:
        logger.error("%s", e)
        return 1
    logger.info("Executed %d migration(s)", len(executed))
    return 0


if __name__ == "__main__":
    sys.exit(main())
