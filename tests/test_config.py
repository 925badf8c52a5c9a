"""Tests for environment-driven settings."""

import pytest

from codered.config import DEFAULT_SITES, load_settings


def test_defaults():
    settings = load_settings({})
    assert settings.database_url is None
    assert settings.storage_backend == "memory"
    assert settings.sites == DEFAULT_SITES
    assert settings.port == 8001


def test_database_url_selects_sql():
    settings = load_settings({"DATABASE_URL": "postgresql:///codered_db", "CODERED_DB_ECHO": "yes"})
    assert settings.storage_backend == "sql"
    assert settings.db_echo is True


def test_site_overrides_merge_with_defaults():
    settings = load_settings({
        "CODERED_SITE_COORDINATES": '{"Ward 12": [51.5071, -0.1266]}',
        "CODERED_DEFAULT_CLINICAL_SITE": "Ward 12",
    })
    assert settings.sites["Ward 12"] == (51.5071, -0.1266)
    assert "Main Lab" in settings.sites
    assert settings.default_clinical_site == "Ward 12"


@pytest.mark.parametrize("environ", [
    {"CODERED_SITE_COORDINATES": "not json"},
    {"CODERED_SITE_COORDINATES": '{"Ward 12": [51.5]}'},
    {"CODERED_DEFAULT_LAB_SITE": "Basement"},
])
def test_bad_site_config(environ):
    with pytest.raises(ValueError):
        load_settings(environ)
