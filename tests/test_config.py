"""Tests for environment-driven settings."""

from __future__ import annotations

from hardban_lab.config import DEFAULT_CORS_ORIGINS, Settings, normalize_database_url


def test_defaults_when_environment_is_empty():
    settings = Settings.from_env({})
    assert settings.database_url == "sqlite:///./hardban_lab.db"
    assert settings.cors_origins == DEFAULT_CORS_ORIGINS
    assert settings.access_token_minutes == 60
    assert settings.is_production is False


def test_values_are_read_from_mapping():
    settings = Settings.from_env({
        "DATABASE_URL": "postgres://u:p@db:5432/label",
        "CORS_ORIGINS": "https://admin.example.com, https://label.example.com,",
        "ACCESS_TOKEN_MINUTES": "15",
        "CACHE_TTL_SECONDS": "2.5",
        "PUBLIC_BASE_URL": "https://api.example.com/",
        "ENVIRONMENT": "production",
        "LOG_LEVEL": "debug",
    })
    assert settings.database_url == "postgresql://u:p@db:5432/label"
    assert settings.cors_origins == ["https://admin.example.com", "https://label.example.com"]
    assert settings.access_token_minutes == 15
    assert settings.cache_ttl_seconds == 2.5
    assert settings.public_base_url == "https://api.example.com"
    assert settings.is_production is True
    assert settings.log_level == "DEBUG"


def test_normalize_database_url_leaves_other_schemes():
    assert normalize_database_url("postgresql://x/y") == "postgresql://x/y"
    assert normalize_database_url("sqlite:///a.db") == "sqlite:///a.db"


def test_rate_limit_settings():
    assert Settings.from_env({}).rate_limit_uploads == "20 per hour"

    settings = Settings.from_env({
        "RATE_LIMIT_ENABLED": "false",
        "RATE_LIMIT_DEFAULT": "50 per minute",
        "RATE_LIMIT_UPLOADS": "5 per hour",
    })
    assert settings.rate_limit_enabled is False
    assert (settings.rate_limit_default, settings.rate_limit_uploads) == ("50 per minute", "5 per hour")
