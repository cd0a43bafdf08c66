"""CLI entry point for database seeding.

Creates the database tables and inserts the apartment roster (sized by
APARTMENT_COUNT) and the default expense categories. Safe to run repeatedly.

Usage:
    python -m src.cli.seed

Exit Codes:
    0 - Success: Database seeded
    1 - Failure: Error encountered; database state unchanged

Logging:
    INFO level logs to both stdout and logs/seed.log
"""

import sys

from src.services.config import load_config
from src.services.logging import setup_cli_logging


def main() -> int:
    """
    Main entry point for database seeding CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    logger = setup_cli_logging()
    try:
        logger.info("Starting database seed...")

        # Load configuration from .env and environment
        config = load_config()
        logger.info(f"Configuration loaded: {config.apartment_count} apartments")

        from src.services import SessionLocal
        from src.services.seeding import SeedService

        db = SessionLocal()
        try:
            result = SeedService(db, logger).execute_seed(config.apartment_ids)
            return 0 if result.success else 1
        finally:
            db.close()

    except KeyboardInterrupt:
        logger.warning("Seed interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Seed failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
