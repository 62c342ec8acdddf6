"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All values may be provided via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Deno Sandbox"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # CORS
    cors_origins: list[str] = ["*"]

    # Payload limits
    max_code_size_bytes: int = 10240  # 10KB

    # Sandbox runtime
    deno_executable: str = "deno"
    package_host: str = "cdn.jsdelivr.net"  # Only host reachable while resolving packages
    workspace_prefix: str = "deno-sandbox-"

    # Deno permission flags granted to every invocation (JSON list)
    # Example: '["--allow-read=/data", "--allow-net=example.com"]'
    sandbox_permissions: list[str] = []


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
