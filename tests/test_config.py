import os

import pytest

from trends_explorer.config import DEFAULT_BASE_URL, TrendsConfig

_ENV_VARS = (
    "TRENDS_API_BASE_URL",
    "TRENDS_API_TIMEOUT",
    "TRENDS_REFRESH_INTERVAL",
    "TRENDS_MAX_KEYWORDS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestTrendsConfig:
    def test_defaults(self):
        config = TrendsConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.refresh_interval == 300
        assert config.max_keywords == 5

    def test_endpoint_url_joins_once(self):
        config = TrendsConfig(base_url="https://example.test/api/")
        assert config.endpoint_url("categories") == \
            "https://example.test/api/categories"

    @pytest.mark.parametrize("kwargs", [
        {"base_url": ""}, {"timeout": 0}, {"refresh_interval": -1},
        {"max_keywords": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            TrendsConfig(**kwargs)


class TestFromEnv:
    def test_defaults_when_unset(self, clean_env, tmp_path):
        assert TrendsConfig.from_env(str(tmp_path / "missing.env")) == TrendsConfig()

    def test_reads_environment(self, clean_env, tmp_path):
        clean_env.setenv("TRENDS_API_BASE_URL", "http://localhost:5000/api")
        clean_env.setenv("TRENDS_API_TIMEOUT", "5.5")
        clean_env.setenv("TRENDS_REFRESH_INTERVAL", "60")
        clean_env.setenv("TRENDS_MAX_KEYWORDS", "3")

        config = TrendsConfig.from_env(str(tmp_path / "missing.env"))

        assert config.base_url == "http://localhost:5000/api"
        assert config.timeout == 5.5
        assert config.refresh_interval == 60
        assert config.max_keywords == 3

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TRENDS_REFRESH_INTERVAL=120\n")
        try:
            config = TrendsConfig.from_env(str(env_file))
        finally:
            os.environ.pop("TRENDS_REFRESH_INTERVAL", None)
        assert config.refresh_interval == 120

    def test_invalid_number(self, clean_env, tmp_path):
        clean_env.setenv("TRENDS_MAX_KEYWORDS", "five")
        with pytest.raises(ValueError, match="TRENDS_MAX_KEYWORDS"):
            TrendsConfig.from_env(str(tmp_path / "missing.env"))
