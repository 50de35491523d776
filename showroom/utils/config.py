"""Configuration management for Showroom."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = "sqlite:///data/db/showroom.db"
    echo: bool = False


class FinancingConfig(BaseModel):
    """Default financing terms applied to listings and the detail calculator."""

    down_payment_percent: int = 20
    term_months: int = 36
    annual_rate_percent: float = 5.9
    term_options: List[int] = Field(default_factory=lambda: [12, 24, 36, 48, 60])


class PricingConfig(BaseModel):
    """Membership subscription prices per duration."""

    monthly: int = 5000
    quarterly: int = 13500
    yearly: int = 48000


class RealtimeConfig(BaseModel):
    """Change-feed reconnect behaviour."""

    max_retries: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    supervisor_interval_seconds: int = 30


class StorefrontConfig(BaseModel):
    """Storefront presentation settings."""

    currency_suffix: str = " DA"
    hidden_provider_keywords: List[str] = Field(default_factory=lambda: ["azra", "أزرا"])
    fuzzy_search_threshold: float = 85.0


class AdminConfig(BaseModel):
    """Admin console settings."""

    session_file: str = "data/session/admin.json"
    identity_url: str = ""
    identity_timeout: float = 10.0


class APIConfig(BaseModel):
    """API configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = "data/logs/showroom.log"
    rotation: str = "10 MB"
    retention: str = "30 days"


class Config(BaseModel):
    """Main configuration model."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    financing: FinancingConfig = Field(default_factory=FinancingConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    storefront: StorefrontConfig = Field(default_factory=StorefrontConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Settings(BaseSettings):
    """Environment-based settings."""

    # Database
    database_url: str = ""

    # Admin identity service
    identity_url: str = ""
    session_file: str = ""

    # Logging
    log_level: str = ""

    # API
    api_host: str = ""
    api_port: int = 0

    model_config = {
        "env_prefix": "SHOWROOM_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


class ConfigManager:
    """Configuration manager for loading and merging config sources."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file
        """
        load_dotenv()

        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "config.yaml"

        self.config_path = config_path
        self.yaml_config = self._load_yaml()

        self.env_settings = Settings()

        self.config = self._merge_config()

    def _load_yaml(self) -> Dict[str, Any]:
        """Load YAML configuration file."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _merge_config(self) -> Config:
        """Merge YAML config with environment variables."""
        merged = self.yaml_config.copy()

        if self.env_settings.database_url:
            merged.setdefault("database", {})["url"] = self.env_settings.database_url

        if self.env_settings.identity_url:
            merged.setdefault("admin", {})["identity_url"] = self.env_settings.identity_url

        if self.env_settings.session_file:
            merged.setdefault("admin", {})["session_file"] = self.env_settings.session_file

        if self.env_settings.log_level:
            merged.setdefault("logging", {})["level"] = self.env_settings.log_level

        if self.env_settings.api_host:
            merged.setdefault("api", {})["host"] = self.env_settings.api_host

        if self.env_settings.api_port:
            merged.setdefault("api", {})["port"] = self.env_settings.api_port

        return Config(**merged)


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> Config:
    """Get global configuration instance."""
    return get_config_manager().config


def get_settings() -> Settings:
    """Get environment settings."""
    return get_config_manager().env_settings


def get_config_manager() -> ConfigManager:
    """Get configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
