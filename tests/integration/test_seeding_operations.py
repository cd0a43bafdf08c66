"""Integration tests for roster and category seeding."""

import logging

import pytest
from sqlalchemy.orm import sessionmaker

import src.services
from src.cli import seed as seed_cli
from src.models import Apartment, Category
from src.services.seeding import DEFAULT_CATEGORIES, CategorySeed, SeedResult, SeedService


class TestSeedService:
    """Tests for SeedService."""

    def test_execute_seed_creates_roster_and_categories(self, db_session):
        result = SeedService(db_session).execute_seed(["G1", "F1", "F2"])

        assert result.success
        assert result.apartments_created == 3
        assert result.categories_created == len(DEFAULT_CATEGORIES)
        assert db_session.get(Apartment, "F2").name == "Apartment F2"
        assert db_session.get(Category, "cleaning").no_split is True

    def test_seeding_is_idempotent(self, db_session):
        service = SeedService(db_session)
        service.execute_seed(["G1", "F1"])

        result = service.execute_seed(["G1", "F1", "F2"])

        assert result.apartments_created == 1
        assert result.categories_created == 0
        assert db_session.query(Apartment).count() == 3

    def test_existing_category_is_not_overwritten(self, db_session):
        db_session.add(Category(id="utilities", name="Bills", icon="💡", no_split=True))
        db_session.commit()

        SeedService(db_session).seed_categories()
        db_session.commit()

        assert db_session.get(Category, "utilities").name == "Bills"

    def test_custom_categories(self, db_session):
        created = SeedService(db_session).seed_categories([CategorySeed("garden", "Garden", "🌱")])
        db_session.commit()

        assert created == 1
        assert [c.id for c in db_session.query(Category).all()] == ["garden"]

    def test_failure_rolls_back(self, db_session, monkeypatch):
        service = SeedService(db_session)

        def broken(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(service, "seed_categories", broken)

        result = service.execute_seed(["G1"])

        assert not result.success
        assert result.error_message == "disk full"
        assert db_session.query(Apartment).count() == 0

    def test_result_formatting(self):
        assert "Apartments: 2" in str(SeedResult(success=True, apartments_created=2))
        assert str(SeedResult(success=False, error_message="boom")) == "✗ Seed failed: boom"


class TestSeedCli:
    """Tests for the seed command entry point."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch):
        monkeypatch.setattr(seed_cli, "setup_cli_logging", lambda: logging.getLogger("ledger.cli"))

    def test_main_seeds_configured_roster(self, db_session, monkeypatch):
        monkeypatch.setenv("APARTMENT_COUNT", "3")
        monkeypatch.setattr(src.services, "SessionLocal", sessionmaker(bind=db_session.get_bind()))

        assert seed_cli.main() == 0

        assert sorted(a.id for a in db_session.query(Apartment).all()) == ["F1", "F2", "G1"]

    def test_main_reports_invalid_configuration(self, monkeypatch):
        monkeypatch.setenv("APARTMENT_COUNT", "lots")

        assert seed_cli.main() == 1
