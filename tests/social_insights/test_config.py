"""Tests for configuration loading."""

from pathlib import Path

from src.social_insights.config import AppConfig, LLMSettings


def test_defaults():
    config = AppConfig()

    assert config.db_path == Path("database/social_insights.db")
    assert config.context_limit == 5
    assert config.history_window == 5
    assert config.llm.model == "gpt-4"
    assert config.llm.temperature == 0.3
    assert config.llm.max_tokens == 1000
    assert not config.is_llm_configured()


def test_load_missing_file_uses_defaults(tmp_path):
    config = AppConfig.load(tmp_path / "missing.yaml", environ={})
    assert config.upload_password == "admin123"
    assert config.default_timezone == "UTC"


def test_load_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
database:
  path: data/posts.db
llm:
  api_key: sk-test
  model: gpt-4o-mini
  temperature: 0.1
  max_retries: 1
chat:
  context_limit: 3
  history_window: 2
ingestion:
  default_timezone: Europe/Berlin
upload:
  password: secret
""",
        encoding="utf-8",
    )

    config = AppConfig.load(config_file, environ={})

    assert config.db_path == Path("data/posts.db")
    assert config.llm.api_key == "sk-test"
    assert config.llm.model == "gpt-4o-mini"
    assert config.llm.temperature == 0.1
    assert config.llm.max_retries == 1
    assert config.llm.max_tokens == 1000
    assert config.context_limit == 3
    assert config.history_window == 2
    assert config.default_timezone == "Europe/Berlin"
    assert config.check_upload_password("secret")
    assert not config.check_upload_password("admin123")
    assert config.is_llm_configured()


def test_environment_overrides_file(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("llm:\n  api_key: from-file\n", encoding="utf-8")

    config = AppConfig.load(
        config_file,
        environ={
            "OPENAI_API_KEY": "from-env",
            "OPENAI_BASE_URL": "http://localhost:8080/v1",
            "SOCIAL_INSIGHTS_MODEL": "local-model",
            "SOCIAL_INSIGHTS_DB_PATH": str(tmp_path / "env.db"),
            "SOCIAL_INSIGHTS_UPLOAD_PASSWORD": "env-secret",
        },
    )

    assert config.llm.api_key == "from-env"
    assert config.llm.base_url == "http://localhost:8080/v1"
    assert config.llm.model == "local-model"
    assert config.db_path == tmp_path / "env.db"
    assert config.upload_password == "env-secret"


def test_placeholder_api_key_is_not_configured():
    config = AppConfig(llm=LLMSettings(api_key="your-api-key-here"))
    assert not config.is_llm_configured()


def test_repository_config_file_loads():
    config_path = Path(__file__).parent.parent.parent / "config" / "social_insights.yaml"
    config = AppConfig.load(config_path, environ={})

    assert config.llm.base_url == "https://api.openai.com/v1"
    assert config.context_limit == 5
    assert config.encoding == "utf-8"
