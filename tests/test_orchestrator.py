"""Tests for the component factory."""

import asyncio

import pytest

from conftest import make_bill
from liquid_bills.config import get_settings
from liquid_bills.orchestrator import create_app_components
from liquid_bills.services.storage import MissingConfigurationError


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory so no .env file is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    for name in ("GOOGLE_SHEETS_CREDENTIALS_PATH", "GOOGLE_SHEETS_SPREADSHEET_ID", "STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestCreateAppComponents:
    def test_memory_backend(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        components = create_app_components()

        assert components.controller.is_configured
        assert components.sheets_client is None
        asyncio.run(components.controller.create_bill(make_bill()))
        assert (tmp_path / "cache" / "liquid_bills_local_cache.json").exists()

    def test_missing_sheets_configuration(self):
        components = create_app_components()

        assert not components.controller.is_configured
        with pytest.raises(MissingConfigurationError):
            asyncio.run(components.controller.create_bill(make_bill()))

    def test_without_storage(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        components = create_app_components(use_storage=False)
        assert not components.controller.is_configured

    def test_horizon_from_settings(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("SERIES_HORIZON_MONTHS", "6")
        components = create_app_components()
        created = asyncio.run(
            components.controller.create_bill(make_bill(is_recurring=True))
        )
        assert len(created) == 7
