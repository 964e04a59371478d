"""Configuration Manager for Secure Credential Handling.

This module provides a secure configuration manager for the document store
connection and the token verification secret.

Security Impact:
    - Credentials are never logged or exposed in error messages
    - The development verification secret is refused in production
    - Validates configuration before use

Architecture:
    - Follows Hexagonal Architecture: Infrastructure layer isolated from domain
    - Supports environment variables (with optional .env file) and JSON files
    - Type-safe configuration using Pydantic models
    - Fail-fast validation prevents runtime errors
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr, field_validator

logger = logging.getLogger(__name__)

# Non-production default for the token verification secret.
DEVELOPMENT_JWT_SECRET = "change-this-secret"

SUPPORTED_ENVIRONMENTS = ["dev", "test", "prod"]


class DocumentStoreConfig(BaseModel):
    """Document store configuration with secure credential handling.

    Security Impact:
        - The connection URI may embed credentials and is stored as SecretStr

    Parameters:
        uri: MongoDB connection URI (SecretStr - never logged); None means unconfigured
        database: Database name
        timeout_ms: Server selection timeout in milliseconds
    """

    uri: Optional[SecretStr] = Field(None, description="MongoDB connection URI (secret)")
    database: str = Field(default="clinic", description="Database name")
    timeout_ms: int = Field(default=2000, ge=1, description="Server selection timeout (ms)")

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Validate the URI scheme without echoing the URI."""
        if v is None:
            return v
        scheme = urlparse(v.get_secret_value()).scheme
        if scheme not in ("mongodb", "mongodb+srv"):
            raise ValueError(f"Unsupported document store URI scheme: {scheme or '(none)'}")
        return v

    @property
    def is_configured(self) -> bool:
        return self.uri is not None

    def masked_uri(self) -> str:
        """Return the URI with credentials removed, for display."""
        if self.uri is None:
            return "(not configured)"
        parsed = urlparse(self.uri.get_secret_value())
        host = parsed.hostname or ""
        port = f":{parsed.port}" if parsed.port else ""
        return f"{parsed.scheme}://{host}{port}/{self.database}"


class AuthConfig(BaseModel):
    """Token verification configuration.

    Parameters:
        jwt_secret: Shared verification secret (SecretStr - never logged)
        algorithms: Accepted signing algorithms
        identity_claim: Claim that carries the requester identity
    """

    jwt_secret: SecretStr = Field(default=SecretStr(DEVELOPMENT_JWT_SECRET), description="Verification secret")
    algorithms: list[str] = Field(default_factory=lambda: ["HS256"], description="Accepted algorithms")
    identity_claim: str = Field(default="id", description="Requester identity claim")

    @field_validator("algorithms", mode="before")
    @classmethod
    def split_algorithms(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            v = [a.strip() for a in v.split(",")]
        algorithms = [a for a in (v or []) if a]
        if not algorithms:
            raise ValueError("At least one JWT algorithm must be configured")
        if any(a.lower() == "none" for a in algorithms):
            raise ValueError("Unsigned tokens cannot be accepted")
        return algorithms

    @property
    def uses_development_secret(self) -> bool:
        return self.jwt_secret.get_secret_value() == DEVELOPMENT_JWT_SECRET


class ConfigManager:
    """Secure configuration manager for credentials and settings.

    Example Usage:
        ```python
        config = ConfigManager.from_environment()
        store_config = config.get_document_store_config()
        auth_config = config.get_auth_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        """Initialize configuration manager.

        Parameters:
            config_data: Configuration dictionary with ``environment``,
                ``document_store`` and ``auth`` sections
        """
        self._config_data = config_data
        self._document_store_config: Optional[DocumentStoreConfig] = None
        self._auth_config: Optional[AuthConfig] = None

        environment = str(config_data.get("environment") or "dev").lower()
        if environment not in SUPPORTED_ENVIRONMENTS:
            raise ValueError(f"Unsupported environment: {environment}. Supported: {SUPPORTED_ENVIRONMENTS}")
        self.environment = environment

    @classmethod
    def from_environment(cls) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - ROSTER_ENV: Deployment environment (dev, test, prod)
            - ROSTER_MONGODB_URI: Document store URI (secret)
            - ROSTER_MONGODB_DATABASE: Database name
            - ROSTER_MONGODB_TIMEOUT_MS: Server selection timeout
            - JWT_SECRET: Token verification secret (secret)
            - ROSTER_JWT_ALGORITHMS: Comma separated algorithms
            - ROSTER_JWT_IDENTITY_CLAIM: Requester identity claim

        Returns:
            ConfigManager instance
        """
        try:
            from dotenv import load_dotenv
            env_path = Path(__file__).parent.parent.parent / ".env"
            if env_path.exists():
                load_dotenv(env_path)
                logger.debug(f"Loaded environment variables from {env_path}")
        except Exception as e:
            logger.warning(f"Failed to load .env file: {str(e)}")

        document_store: Dict[str, Any] = {
            "uri": os.getenv("ROSTER_MONGODB_URI") or None,
            "database": os.getenv("ROSTER_MONGODB_DATABASE", "clinic"),
        }
        if os.getenv("ROSTER_MONGODB_TIMEOUT_MS"):
            document_store["timeout_ms"] = int(os.getenv("ROSTER_MONGODB_TIMEOUT_MS"))

        auth: Dict[str, Any] = {
            "jwt_secret": os.getenv("JWT_SECRET") or DEVELOPMENT_JWT_SECRET,
            "algorithms": os.getenv("ROSTER_JWT_ALGORITHMS", "HS256"),
            "identity_claim": os.getenv("ROSTER_JWT_IDENTITY_CLAIM", "id"),
        }

        return cls({
            "environment": os.getenv("ROSTER_ENV", "dev"),
            "document_store": document_store,
            "auth": auth,
        })

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        stat_info = config_file.stat()
        if stat_info.st_mode & 0o077 != 0:
            logger.warning(
                f"Configuration file has overly permissive permissions: {config_path}. "
                "Consider setting to 600 for credential files."
            )

        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        return cls(config_data)

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    def get_document_store_config(self) -> DocumentStoreConfig:
        """Get document store configuration."""
        if self._document_store_config is None:
            data = dict(self._config_data.get("document_store", {}))
            self._document_store_config = DocumentStoreConfig(**data)
        return self._document_store_config

    def get_auth_config(self) -> AuthConfig:
        """Get token verification configuration.

        Raises:
            ValueError: If the development secret is configured in production
        """
        if self._auth_config is None:
            data = dict(self._config_data.get("auth", {}))
            auth_config = AuthConfig(**data)
            if auth_config.uses_development_secret:
                if self.is_production:
                    raise ValueError("JWT_SECRET must be set to a non-default value in production")
                logger.warning("Using the development JWT secret; set JWT_SECRET outside development")
            self._auth_config = auth_config
        return self._auth_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dotted key (e.g., "document_store.database")."""
        value: Any = self._config_data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default
