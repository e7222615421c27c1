"""Configuration loader for social insights."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

PLACEHOLDER_API_KEY = "your-api-key-here"


@dataclass
class LLMSettings:
    """Settings for the chat-completion endpoint."""

    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4"
    temperature: float = 0.3
    max_tokens: int = 1000
    timeout_seconds: float = 60.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_exponential_base: float = 2.0
    retry_max_delay: float = 30.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LLMSettings":
        defaults = cls()
        return cls(
            api_key=data.get("api_key", defaults.api_key) or "",
            base_url=data.get("base_url", defaults.base_url),
            model=data.get("model", defaults.model),
            temperature=float(data.get("temperature", defaults.temperature)),
            max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
            timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
            max_retries=int(data.get("max_retries", defaults.max_retries)),
            retry_base_delay=float(data.get("retry_base_delay", defaults.retry_base_delay)),
            retry_exponential_base=float(
                data.get("retry_exponential_base", defaults.retry_exponential_base)
            ),
            retry_max_delay=float(data.get("retry_max_delay", defaults.retry_max_delay)),
        )


@dataclass
class AppConfig:
    """Central configuration container.

    Values come from an optional YAML file; environment variables override
    the file for secrets and paths.
    """

    DEFAULT_CONFIG_PATH = Path("config/social_insights.yaml")

    db_path: Path = Path("database/social_insights.db")
    llm: LLMSettings = field(default_factory=LLMSettings)
    context_limit: int = 5
    history_window: int = 5
    default_timezone: str = "UTC"
    encoding: str = "utf-8"
    upload_password: str = "admin123"

    @classmethod
    def load(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """Load configuration from YAML and apply environment overrides."""
        path = Path(config_path) if config_path else cls.DEFAULT_CONFIG_PATH
        if not path.is_absolute():
            path = Path.cwd() / path
        data = cls._read_yaml(path)
        config = cls.from_dict(data)
        config.apply_env(os.environ if environ is None else environ)
        return config

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        defaults = cls()
        database = data.get("database", {}) or {}
        chat = data.get("chat", {}) or {}
        ingestion = data.get("ingestion", {}) or {}
        upload = data.get("upload", {}) or {}
        return cls(
            db_path=Path(database.get("path", defaults.db_path)),
            llm=LLMSettings.from_dict(data.get("llm", {}) or {}),
            context_limit=int(chat.get("context_limit", defaults.context_limit)),
            history_window=int(chat.get("history_window", defaults.history_window)),
            default_timezone=ingestion.get("default_timezone", defaults.default_timezone),
            encoding=ingestion.get("encoding", defaults.encoding),
            upload_password=str(upload.get("password", defaults.upload_password)),
        )

    def apply_env(self, environ: Mapping[str, str]) -> None:
        if environ.get("SOCIAL_INSIGHTS_DB_PATH"):
            self.db_path = Path(environ["SOCIAL_INSIGHTS_DB_PATH"])
        if environ.get("OPENAI_API_KEY"):
            self.llm.api_key = environ["OPENAI_API_KEY"]
        if environ.get("OPENAI_BASE_URL"):
            self.llm.base_url = environ["OPENAI_BASE_URL"]
        if environ.get("SOCIAL_INSIGHTS_MODEL"):
            self.llm.model = environ["SOCIAL_INSIGHTS_MODEL"]
        if environ.get("SOCIAL_INSIGHTS_UPLOAD_PASSWORD"):
            self.upload_password = environ["SOCIAL_INSIGHTS_UPLOAD_PASSWORD"]

    def is_llm_configured(self) -> bool:
        key = self.llm.api_key.strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    def check_upload_password(self, supplied: Optional[str]) -> bool:
        """Compare against the upload password. Not a security boundary."""
        return supplied == self.upload_password
