"""Tests for Settings, the JSON log formatter and the secrets loader."""

import json
import logging

import orjson
import pytest

from src.domain.errors import ConfigurationError
from src.infrastructure.config.settings import DEFAULT_QUERY_BY, Settings
from src.infrastructure.observability.logging_config import JsonFormatter
from src.infrastructure.secrets.secrets_manager_adapter import SecretsManagerAdapter


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SESSION_SECRET", raising=False)
        settings = Settings(_env_file=None)
        assert settings.engine_timeout_seconds == 10.0
        assert settings.search_query_by == DEFAULT_QUERY_BY
        assert settings.search_per_page == 12
        assert settings.uses_default_secret

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("STAGING_HOST", "ts.staging.internal")
        monkeypatch.setenv("STATE_MAX_BYTES", "4096")
        settings = Settings(_env_file=None)
        assert settings.staging_host == "ts.staging.internal"
        assert settings.state_max_bytes == 4096

    def test_destination_profiles(self):
        settings = Settings(_env_file=None, production_host="ts.example.com")
        prod = settings.destination_profile("production", "key")
        assert prod.base_url == "https://ts.example.com:443"
        assert settings.destination_profile("staging", "key").port == 8108
        with pytest.raises(ConfigurationError):
            settings.destination_profile("qa", "key")


class TestJsonFormatter:
    def _format(self, **extra) -> dict:
        record = logging.LogRecord("console.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return orjson.loads(JsonFormatter().format(record))

    def test_basic_fields(self):
        entry = self._format(collection="products")
        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["collection"] == "products"

    def test_secrets_are_redacted_at_any_depth(self):
        entry = self._format(password="pw", profile={"host": "h", "api_key": "xyz"})
        assert entry["password"] == "[REDACTED]"
        assert entry["profile"] == {"host": "h", "api_key": "[REDACTED]"}


class FakeSecretsClient:
    def __init__(self, secret_string: str) -> None:
        self.secret_string = secret_string

    def get_secret_value(self, SecretId: str) -> dict:
        return {"SecretString": self.secret_string}


class TestSecretsManagerAdapter:
    def test_merge_keeps_existing_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.delenv("SESSION_SECRET", raising=False)
        secret = json.dumps({"session_secret": "from-aws", "database_url": "mysql+pymysql://x"})
        adapter = SecretsManagerAdapter(client=FakeSecretsClient(secret))

        applied = adapter.merge_into_env("arn:console")

        assert applied == ["SESSION_SECRET"]
        assert Settings(_env_file=None).session_secret == "from-aws"
        assert Settings(_env_file=None).database_url == "sqlite://"

    def test_non_object_secret(self):
        adapter = SecretsManagerAdapter(client=FakeSecretsClient("[1, 2]"))
        with pytest.raises(ConfigurationError):
            adapter.get_secret("arn:console")
