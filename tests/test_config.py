"""Tests for settings loading."""

from nutrition_diary.config import Settings


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "key")
    monkeypatch.setenv("CATALOG_TIMEOUT_SECONDS", "2.5")

    settings = Settings(_env_file=None)

    assert settings.supabase_url == "https://env.supabase.co"
    assert settings.catalog_timeout_seconds == 2.5
    assert settings.max_quantity_grams == 100_000
    assert settings.debug is False
