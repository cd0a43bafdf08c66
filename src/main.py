"""Main application entry point."""

import argparse
import logging

import uvicorn

from src.models import Base
from src.services import engine
from src.services.config import load_config
from src.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Apartment Ledger API server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    args = parser.parse_args()

    config = load_config()
    setup_server_logging(config.log_file)

    # Tables are created on startup; there is no migration history to replay
    Base.metadata.create_all(bind=engine)

    logger.info(f"Starting Uvicorn server on {args.host}:{args.port} (database: {config.database_url})")
    uvicorn.run("src.api.app:app", host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
