from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
import os

from webanalyzer.constants import (
    DEFAULT_GLOBAL_PROBE_LIMIT,
    DEFAULT_MAX_CONCURRENT_PROBES,
    DEFAULT_PAGE_MAX_REDIRECTS,
    DEFAULT_PAGE_TIMEOUT_SECONDS,
    DEFAULT_PROBE_MAX_REDIRECTS,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///website_analyzer.db")  # Default to SQLite

    # Database backend configuration
    DB_BACKEND = os.getenv("DB_BACKEND", "local")

    USER_AGENT = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")


settings = Settings()


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError:
        return default  # Keep default if conversion fails


@dataclass
class AnalyzerConfig:
    """Tunables for the analysis pipeline."""
    page_timeout: float = DEFAULT_PAGE_TIMEOUT_SECONDS
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    page_max_redirects: int = DEFAULT_PAGE_MAX_REDIRECTS
    probe_max_redirects: int = DEFAULT_PROBE_MAX_REDIRECTS
    max_concurrent_probes: int = DEFAULT_MAX_CONCURRENT_PROBES
    global_probe_limit: int = DEFAULT_GLOBAL_PROBE_LIMIT  # 0 disables the cross-job pool
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Load configuration from environment variables.

        Returns:
            AnalyzerConfig: Configuration instance with values from environment
        """
        return cls(
            page_timeout=_env_number("PAGE_TIMEOUT", DEFAULT_PAGE_TIMEOUT_SECONDS, float),
            probe_timeout=_env_number("PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT_SECONDS, float),
            page_max_redirects=_env_number("PAGE_MAX_REDIRECTS", DEFAULT_PAGE_MAX_REDIRECTS, int),
            probe_max_redirects=_env_number("PROBE_MAX_REDIRECTS", DEFAULT_PROBE_MAX_REDIRECTS, int),
            max_concurrent_probes=_env_number("MAX_CONCURRENT_PROBES", DEFAULT_MAX_CONCURRENT_PROBES, int),
            global_probe_limit=_env_number("GLOBAL_PROBE_LIMIT", DEFAULT_GLOBAL_PROBE_LIMIT, int),
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }


def resolve_config(config: Optional[AnalyzerConfig] = None) -> AnalyzerConfig:
    """Return the given configuration or one loaded from the environment."""
    return config if config is not None else AnalyzerConfig.from_env()
