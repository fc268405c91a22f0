import pytest
from pydantic import ValidationError

from zipweather.settings import (
    OPENWEATHER_API_KEY_SECRET,
    EnvSecretProvider,
    EnvSettings,
    MissingSecretError,
    load_yaml_settings,
)


class TestYamlSettings:
    def test_loads_values(self, tmp_path):
        config = tmp_path / "zipweather.yaml"
        config.write_text(
            "upstream:\n"
            "  base_url: https://example.test/api\n"
            "  timeout_seconds: 3\n"
            "  country_code: ca\n"
            "geocode_cache:\n"
            "  ttl_seconds: 600\n"
            "auth:\n"
            "  access_token_ttl_seconds: 900\n",
            encoding="utf-8",
        )

        settings = load_yaml_settings(config)

        assert settings.upstream.base_url == "https://example.test/api/"
        assert settings.upstream.timeout_seconds == 3
        assert settings.upstream.country_code == "CA"
        assert settings.geocode_cache.ttl_seconds == 600
        assert settings.auth.access_token_ttl_seconds == 900
        assert settings.auth.refresh_token_ttl_seconds == 14 * 24 * 60 * 60
        assert settings.service.port == 5000

    def test_empty_file_uses_defaults(self, tmp_path):
        config = tmp_path / "zipweather.yaml"
        config.write_text("", encoding="utf-8")

        settings = load_yaml_settings(config)

        assert settings.upstream.base_url == "https://api.openweathermap.org/"
        assert settings.geocode_cache.ttl_seconds == 86400

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_settings(tmp_path / "missing.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        config = tmp_path / "zipweather.yaml"
        config.write_text("- one\n- two\n", encoding="utf-8")

        with pytest.raises(ValueError):
            load_yaml_settings(config)

    def test_rejects_relative_base_url(self, tmp_path):
        config = tmp_path / "zipweather.yaml"
        config.write_text("upstream:\n  base_url: api.openweathermap.org\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            load_yaml_settings(config)


class TestEnvSecretProvider:
    def test_reads_api_key_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ZIPWEATHER_OPENWEATHER_API_KEY", " secret-key ")

        provider = EnvSecretProvider(EnvSettings())

        assert provider.get_secret(OPENWEATHER_API_KEY_SECRET) == "secret-key"

    def test_unset_api_key(self):
        provider = EnvSecretProvider(EnvSettings(_env_file=None, zipweather_openweather_api_key=""))

        with pytest.raises(MissingSecretError):
            provider.get_secret(OPENWEATHER_API_KEY_SECRET)

    def test_unknown_secret(self):
        provider = EnvSecretProvider(EnvSettings(_env_file=None, zipweather_openweather_api_key="key"))

        with pytest.raises(MissingSecretError):
            provider.get_secret("database_password")

    def test_log_level_is_validated(self):
        with pytest.raises(ValidationError):
            EnvSettings(_env_file=None, zipweather_log_level="chatty")
