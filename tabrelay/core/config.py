"""Application configuration using pydantic-settings."""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


class BrowserConfig(BaseModel):
    """Browser launch or connection configuration."""

    cdp_url: Optional[str] = None
    headless: bool = True
    user_data_dir: Optional[str] = None
    connect_retries: int = 5
    retry_delay: float = 2.0
    navigation_timeout_ms: int = 60000
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = 1920
    viewport_height: int = 1080
    locale: str = "en-US"


class ServerConfig(BaseModel):
    """HTTP server binding."""

    host: str = "127.0.0.1"
    port: int = 8080


class TabConfig(BaseModel):
    """Tab session defaults."""

    default_expiration: int = 30


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    model_config = SettingsConfigDict(
        env_prefix="TABRELAY_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    browser: BrowserConfig = BrowserConfig()
    server: ServerConfig = ServerConfig()
    tabs: TabConfig = TabConfig()
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        Values in the file take precedence over environment variables.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
