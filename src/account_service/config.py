"""
# Configuration Management Module

Configuration for the Account Service, built on **Pydantic Settings**.

## Loading Hierarchy

Higher layers override lower layers:

1. **Environment variables** (highest priority)
2. **`ACCOUNT_SERVICE_CONFIG_PATH`**: custom config file path from the environment
3. **`.env` file** in the project root
4. **Default values** declared on `Settings` (lowest priority)

If no configuration file is found the service runs in environment-only mode.

## Configuration Groups

| Group | Purpose |
|-------|---------|
| **Server** | Host, port, debug mode, log level |
| **Database (MongoDB)** | Connection URL, database name, timeouts, credentials |
| **Redis / Event Bus** | Bus connection, channel prefix, RPC timeout |
| **Security** | bcrypt work factor |
| **Query** | Default and maximum page size |
| **CORS** | Allowed origins |

## Usage

```python
from account_service.config import settings

if settings.EVENT_BUS_ENABLED:
    await event_bus.connect()
```
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "ACCOUNT_SERVICE_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path.

    Checks, in order, the `ACCOUNT_SERVICE_CONFIG_PATH` environment variable and a `.env`
    file in the project root. Returns `None` when neither exists, which leaves the
    service in environment-variable-only mode.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode and log level.
    *   **Database**: MongoDB connection details.
    *   **Event Bus**: Redis connection, channel prefix and RPC timeout.
    *   **Query**: Pagination defaults applied when a request omits `limit`.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://127.0.0.1:27017"
    MONGODB_DATABASE: str = "account-service"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Redis configuration (event bus)
    REDIS_URL: Optional[str] = None
    REDIS_HOST: str = "127.0.0.1"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[SecretStr] = None

    # Event bus
    EVENT_BUS_ENABLED: bool = True
    EVENT_BUS_PREFIX: str = "account"
    RPC_TIMEOUT: int = 5  # seconds

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    # Query defaults
    QUERY_DEFAULT_LIMIT: int = 100
    QUERY_MAX_LIMIT: int = 1000

    # CORS
    CORS_ORIGINS: str = ""

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .env and not empty!")
        return v

    @field_validator("RPC_TIMEOUT", mode="before")
    @classmethod
    def validate_timeout_values(cls, v: Any, info: Any) -> int:
        """Enforces a 1-300 second range for the RPC timeout."""
        value = int(v)
        if value < 1 or value > 300:
            raise ValueError(f"{info.field_name} must be between 1 and 300 seconds")
        return value

    @field_validator("QUERY_DEFAULT_LIMIT", "QUERY_MAX_LIMIT", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """Validates that numeric settings are positive integers."""
        value = int(v)
        if value < 1:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("BCRYPT_ROUNDS", mode="before")
    @classmethod
    def validate_bcrypt_rounds(cls, v: Any, info: Any) -> int:
        """bcrypt accepts work factors between 4 and 31."""
        value = int(v)
        if value < 4 or value > 31:
            raise ValueError(f"{info.field_name} must be between 4 and 31")
        return value

    @property
    def is_production(self) -> bool:
        """True when debug mode is disabled."""
        return not self.DEBUG


# Global settings instance
settings: Settings = Settings()

# Compute effective REDIS_URL if not explicitly provided.
if not settings.REDIS_URL:
    creds = ""
    if settings.REDIS_PASSWORD:
        creds = f":{settings.REDIS_PASSWORD.get_secret_value()}@"
    settings.REDIS_URL = f"redis://{creds}{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
