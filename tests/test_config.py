"""Tests for YAML + environment configuration."""

import pytest

from cidfetch.config import Config

ENV_VARS = list(Config.ENV_MAPPINGS)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "gateway:\n"
        "  url: gw.example\n"
        "cache:\n"
        "  max_entries: 10\n"
        "retry:\n"
        "  max_retries: 2\n"
    )
    return path


class TestConfigLoading:
    def test_bundled_defaults(self):
        config = Config()

        assert config.get('cache', 'max_entries') == 1000
        assert config.get('cache', 'ttl_seconds') == 1800
        assert config.get('retry', 'max_retries') == 2
        assert config.get('retry', 'base_delay') == 1.0
        assert config.get('fetcher', 'settle_on_cache_hit') is False

    def test_reads_file(self, config_file):
        config = Config(config_file)

        assert config.gateway == {"url": "gw.example"}
        assert config.cache == {"max_entries": 10}
        assert config.logging == {}

    def test_missing_key_returns_default(self, config_file):
        config = Config(config_file)

        assert config.get('cache', 'ttl_seconds', default=60) == 60
        assert config.get('gateway', 'url', 'deeper') is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("cache: [unclosed\n")

        with pytest.raises(ValueError):
            Config(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert Config(path).gateway == {}


class TestEnvOverrides:
    def test_overrides_and_converts(self, config_file, monkeypatch):
        monkeypatch.setenv("CACHE_MAX_ENTRIES", "25")
        monkeypatch.setenv("RETRY_BASE_DELAY", "0.25")
        monkeypatch.setenv("FETCHER_SETTLE_ON_CACHE_HIT", "true")
        monkeypatch.setenv("PINATA_JWT", "eyJhbGciOi.abc")

        config = Config(config_file)

        assert config.get('cache', 'max_entries') == 25
        assert config.get('retry', 'base_delay') == 0.25
        assert config.get('fetcher', 'settle_on_cache_hit') is True
        assert config.gateway == {"url": "gw.example", "jwt": "eyJhbGciOi.abc"}

    def test_creates_missing_sections(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("cache: null\n")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "90")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        config = Config(path)

        assert config.cache == {"ttl_seconds": 90}
        assert config.logging == {"level": "DEBUG"}

    def test_secrets_and_urls_stay_strings(self, config_file, monkeypatch):
        # Given: values that would parse as numbers
        monkeypatch.setenv("PINATA_GATEWAY_TOKEN", "00123")
        monkeypatch.setenv("PINATA_JWT", "1e5")
        monkeypatch.setenv("GATEWAY_URL", "8080")

        # When
        config = Config(config_file)

        # Then: passed through verbatim
        assert config.get('gateway', 'access_token') == "00123"
        assert config.get('gateway', 'jwt') == "1e5"
        assert config.get('gateway', 'url') == "8080"

    def test_numeric_settings_are_typed(self, config_file, monkeypatch):
        monkeypatch.setenv("RETRY_MAX_RETRIES", "5")
        monkeypatch.setenv("GATEWAY_TIMEOUT", "10")

        config = Config(config_file)

        assert config.get('retry', 'max_retries') == 5
        assert isinstance(config.get('retry', 'max_retries'), int)
        assert isinstance(config.get('gateway', 'timeout'), float)

    @pytest.mark.parametrize("name,value", [
        ("CACHE_MAX_ENTRIES", "lots"),
        ("FETCHER_SETTLE_ON_CACHE_HIT", "maybe"),
    ])
    def test_invalid_override_names_the_variable(self, config_file, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError, match=name):
            Config(config_file)


class TestConfigShape:
    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            Config(path)
