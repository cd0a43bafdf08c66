"""Configuration loading for the apartment ledger.

Loads settings from .env file and environment variables with sensible defaults.
Validates configuration and provides clear error messages.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./ledger.db"
DEFAULT_APARTMENT_COUNT = 7

# Predefined rosters for the common building sizes
APARTMENTS_3 = ["G1", "F1", "F2"]
APARTMENTS_7 = ["G1", "F1", "F2", "S1", "S2", "T1", "T2"]
APARTMENTS_10 = ["G1", "G2", "F1", "F2", "F3", "S1", "S2", "S3", "T1", "T2"]

# Categories that were hardcoded as no-split before the per-category flag existed
DEFAULT_NO_SPLIT_LEGACY_CATEGORIES = ("cleaning",)


@dataclass
class LedgerConfig:
    """Configuration for the ledger application."""

    database_url: str = DEFAULT_DATABASE_URL
    """SQLAlchemy database URL (default: local SQLite)"""

    log_file: str = "logs/server.log"
    """Path to log file (default: logs/server.log)"""

    apartment_count: int = DEFAULT_APARTMENT_COUNT
    """Number of apartments in the building roster"""

    no_split_legacy_categories: tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_NO_SPLIT_LEGACY_CATEGORIES
    )
    """Lowercase category ids/names treated as no-split when the category is unknown"""

    @property
    def apartment_ids(self) -> list[str]:
        """Apartment ids for the configured roster size."""
        return get_apartment_ids(self.apartment_count)


def get_apartment_ids(count: int) -> list[str]:
    """Return apartment ids for a building with `count` apartments.

    Counts 3, 7 and 10 use the predefined floor-based rosters; any other
    positive count generates A1..An.

    Args:
        count: Number of apartments

    Returns:
        List of apartment ids (empty for non-positive count)
    """
    if count == 3:
        return list(APARTMENTS_3)
    if count == 7:
        return list(APARTMENTS_7)
    if count == 10:
        return list(APARTMENTS_10)
    if count > 0:
        return [f"A{i + 1}" for i in range(count)]
    return []


def load_env_file(path: str = ".env") -> None:
    """Load `path` into the environment if it exists; set variables win."""
    env_path = Path(path)
    if env_path.exists():
        load_dotenv(env_path)


def get_database_url() -> str:
    """Database URL from the environment or .env, as load_config resolves it."""
    load_env_file()
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _parse_legacy_categories(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_NO_SPLIT_LEGACY_CATEGORIES
    return tuple(name.strip().lower() for name in raw.split(",") if name.strip())


def load_config() -> LedgerConfig:
    """
    Load configuration from .env file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (DATABASE_URL, LOG_FILE, APARTMENT_COUNT, etc.)
    2. .env file in project root
    3. Default values

    Returns:
        LedgerConfig with all settings

    Raises:
        ValueError: If configuration is invalid

    Example:
        Create .env file:
        ```
        DATABASE_URL=sqlite:///./ledger.db
        APARTMENT_COUNT=10
        NO_SPLIT_LEGACY_CATEGORIES=cleaning,personal
        ```

        Then call:
        ```
        config = load_config()
        ```
    """
    database_url = get_database_url()
    log_file = os.getenv("LOG_FILE", "logs/server.log")
    raw_count = os.getenv("APARTMENT_COUNT", str(DEFAULT_APARTMENT_COUNT))

    if not database_url:
        raise ValueError(
            "DATABASE_URL is empty. "
            "Set DATABASE_URL environment variable or in .env file"
        )

    try:
        apartment_count = int(raw_count)
    except ValueError as e:
        raise ValueError(
            f"APARTMENT_COUNT must be an integer, got: {raw_count!r}"
        ) from e

    if apartment_count <= 0:
        raise ValueError(f"APARTMENT_COUNT must be positive, got: {apartment_count}")

    return LedgerConfig(
        database_url=database_url,
        log_file=log_file,
        apartment_count=apartment_count,
        no_split_legacy_categories=_parse_legacy_categories(
            os.getenv("NO_SPLIT_LEGACY_CATEGORIES")
        ),
    )
