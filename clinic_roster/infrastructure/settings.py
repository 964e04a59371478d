"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.

Security Impact:
    - Settings are loaded from secure configuration sources
    - Sensitive values are never logged
"""

import os
from typing import Optional

from clinic_roster.infrastructure.config_manager import (
    AuthConfig,
    ConfigManager,
    DocumentStoreConfig,
)

# Application metadata
APP_NAME = "Clinic Roster"
APP_VERSION = "1.0.0"

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:3001,http://127.0.0.1:3000,http://127.0.0.1:3001"


class Settings:
    """Application settings loaded from configuration manager and environment."""

    def __init__(self):
        self._config_manager: Optional[ConfigManager] = None

        self.app_name = os.getenv("ROSTER_APP_NAME", APP_NAME)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.json_logs = os.getenv("JSON_LOGS", "false").lower() == "true"
        self.enable_hsts = os.getenv("ENABLE_HSTS", "false").lower() == "true"

        # Per-doctor fan-out; 1 keeps the aggregation sequential
        self.fanout_workers = max(1, int(os.getenv("ROSTER_FANOUT_WORKERS", "1")))

        self.cors_origins = [
            o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()
        ]

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    @property
    def document_store_config(self) -> DocumentStoreConfig:
        return self.config_manager.get_document_store_config()

    @property
    def auth_config(self) -> AuthConfig:
        return self.config_manager.get_auth_config()

    @property
    def environment(self) -> str:
        return self.config_manager.environment


# Global settings instance
settings = Settings()
