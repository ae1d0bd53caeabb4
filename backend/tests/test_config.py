"""
Tests for environment-based Settings loading.
"""

import os

import pytest
from pydantic import ValidationError
from unittest.mock import patch

from bridge.config import (
    DEFAULT_NYLAS_API_URI,
    DEFAULT_SALESYS_ORDERS_URL,
    Settings,
    load_settings,
)


_ENV_KEYS = [
    "PORT", "LOG_LEVEL", "WEBHOOK_SECRET", "NYLAS_API_KEY", "NYLAS_API_URI",
    "SALESYS_API_TOKEN", "SALESYS_ORDERS_URL", "SALESYS_USER_ID", "SALESYS_PROJECT_ID",
    "SALESYS_TAG_IDS", "SALESYS_FIELD_ORGANIZATION", "SALESYS_FIELD_DOMAIN",
    "SALESYS_FIELD_SALESPERSON_EMAIL", "OUTBOUND_TIMEOUT_SECONDS",
    "PROCESSING_TIMEOUT_SECONDS", "WEBHOOK_MAX_BODY_BYTES",
]


@pytest.fixture()
def clean_env():
    """Process env without any bridge variables and without reading .env."""
    env = {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}
    with patch.dict(os.environ, env, clear=True), \
         patch("bridge.config.load_dotenv"):
        yield


class TestLoadSettings:

    def test_defaults_when_nothing_is_set(self, clean_env):
        settings = load_settings()

        assert settings.port == 3000
        assert settings.webhook_secret is None
        assert settings.nylas_api_uri == DEFAULT_NYLAS_API_URI
        assert settings.salesys_orders_url == DEFAULT_SALESYS_ORDERS_URL
        assert settings.salesys_tag_ids == ()
        assert settings.salesys_field_organization == "organizationName"
        assert settings.salesys_field_domain == "domain"
        assert settings.salesys_field_salesperson_email == "salespersonEmail"
        assert settings.outbound_timeout_seconds == 10.0
        assert settings.webhook_max_body_bytes == 2 * 1024 * 1024
        assert settings.order_dispatch_configured is False

    def test_reads_environment(self, clean_env):
        with patch.dict(os.environ, {
            "PORT": "8080",
            "WEBHOOK_SECRET": "s3cret",
            "NYLAS_API_KEY": "nk",
            "NYLAS_API_URI": "https://api.eu.nylas.com/",
            "SALESYS_API_TOKEN": "st",
            "SALESYS_USER_ID": "u",
            "SALESYS_PROJECT_ID": "p",
            "SALESYS_TAG_IDS": "a, b,,c ",
            "SALESYS_FIELD_DOMAIN": "f-domain",
            "OUTBOUND_TIMEOUT_SECONDS": "2.5",
            "WEBHOOK_MAX_BODY_BYTES": "1024",
            "LOG_LEVEL": "debug",
        }):
            settings = load_settings()

        assert settings.port == 8080
        assert settings.webhook_secret == "s3cret"
        assert settings.nylas_api_uri == "https://api.eu.nylas.com"
        assert settings.salesys_tag_ids == ("a", "b", "c")
        assert settings.salesys_field_domain == "f-domain"
        assert settings.outbound_timeout_seconds == 2.5
        assert settings.webhook_max_body_bytes == 1024
        assert settings.log_level == "DEBUG"
        assert settings.order_dispatch_configured is True

    def test_blank_values_count_as_unset(self, clean_env):
        with patch.dict(os.environ, {"WEBHOOK_SECRET": "   ", "SALESYS_FIELD_DOMAIN": ""}):
            settings = load_settings()

        assert settings.webhook_secret is None
        assert settings.salesys_field_domain == "domain"

    def test_invalid_number_falls_back_to_default(self, clean_env, caplog):
        with patch.dict(os.environ, {"PORT": "eighty", "PROCESSING_TIMEOUT_SECONDS": "soon"}):
            with caplog.at_level("WARNING"):
                settings = load_settings()

        assert settings.port == 3000
        assert settings.processing_timeout_seconds == 30.0
        assert "PORT" in caplog.text


class TestSettings:

    def test_is_immutable(self):
        settings = Settings(webhook_secret="a")
        with pytest.raises(ValidationError):
            settings.webhook_secret = "b"
