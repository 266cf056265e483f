"""Application configuration using Pydantic Settings.

This module provides centralized configuration management with environment
variable validation, type coercion, and default values.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """Application settings with environment variable validation.

    All settings can be overridden via environment variables.
    Sensitive values should be provided via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Application
    # ========================================
    app_env: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    app_name: str = Field(
        default="Refresh",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    allowed_origins: list[str] = Field(
        default_factory=list,
        description="CORS origins allowed outside development",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format (json for production, console for dev)",
    )

    # ========================================
    # Server
    # ========================================
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port",
    )

    # ========================================
    # Redis (key-value store)
    # ========================================
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the index store",
    )

    # ========================================
    # Event
    # ========================================
    active_year: int = Field(
        default=2024,
        ge=2022,
        le=2077,
        description="Year of the currently running event",
    )
    last_active_week: int = Field(
        default=6,
        ge=1,
        le=53,
        description="Highest week number a work can be submitted for",
    )

    # ========================================
    # Authentication
    # ========================================
    identity_header: str = Field(
        default="X-Refresh-Identity",
        description="Header carrying the caller ID verified by the auth gateway",
    )
    editors: list[str] = Field(
        default_factory=list,
        description="Caller IDs with staff privileges",
    )

    # ========================================
    # Thumbnails
    # ========================================
    cdn_base_url: str = Field(
        default="https://cdn.refresh.example/ugc/",
        description="Prefix of assets uploaded through the pre-signed URL flow",
    )
    thumbnail_service_url: str = Field(
        default="http://localhost:8787",
        description="Base URL of the thumbnail pipeline",
    )
    thumbnail_timeout: int = Field(
        default=20,
        ge=1,
        description="Thumbnail pipeline request timeout in seconds",
    )
    placeholder_small_thumbnail_url: str = Field(
        default="https://cdn.refresh.example/static/audio-small.png",
        description="Placeholder thumbnail for non hi-DPI screens",
    )
    placeholder_hi_dpi_thumbnail_url: str = Field(
        default="https://cdn.refresh.example/static/audio-hidpi.png",
        description="Placeholder thumbnail for hi-DPI screens",
    )
    audio_extensions: list[str] = Field(
        default_factory=lambda: ["mp3", "wav", "ogg", "flac", "m4a", "aac"],
        description="Extensions classified as audio items",
    )
    image_extensions: list[str] = Field(
        default_factory=lambda: ["png", "jpg", "jpeg", "gif", "webp", "avif"],
        description="Extensions classified as direct external images",
    )

    # ========================================
    # Discord
    # ========================================
    discord_enabled: bool = Field(
        default=False,
        description="Post announcements for works to Discord",
    )
    discord_api_url: str = Field(
        default="https://discord.com/api/v10",
        description="Discord REST API base URL",
    )
    discord_bot_token: SecretStr = Field(
        default=SecretStr(""),
        description="Discord bot token",
    )
    discord_channel_id: str = Field(
        default="",
        description="Channel receiving work announcements",
    )
    discord_timeout: int = Field(
        default=10,
        ge=1,
        description="Discord API request timeout in seconds",
    )
    site_url: str = Field(
        default="https://refresh.example",
        description="Public site URL used in announcement links",
    )

    # ========================================
    # Uploads (S3-compatible storage)
    # ========================================
    s3_endpoint_url: str | None = Field(
        default=None,
        description="S3-compatible endpoint (None uses AWS)",
    )
    s3_bucket: str = Field(
        default="refresh-ugc",
        description="Bucket receiving user uploads",
    )
    s3_region: str = Field(
        default="us-east-1",
        description="S3 region",
    )
    aws_access_key_id: str | None = Field(
        default=None,
        description="Access key ID (optional, uses IAM role if not provided)",
    )
    aws_secret_access_key: SecretStr | None = Field(
        default=None,
        description="Secret access key",
    )
    upload_expiry_seconds: int = Field(
        default=300,
        ge=1,
        description="Pre-signed upload URL expiry in seconds",
    )
    maximum_content_length: int = Field(
        default=100 * 1024 * 1024,
        ge=1,
        description="Largest upload accepted, in bytes",
    )
    allowed_upload_extensions: list[str] = Field(
        default_factory=lambda: [
            "png", "jpg", "jpeg", "gif", "webp", "avif",
            "mp3", "wav", "ogg", "flac", "m4a", "aac",
            "mp4", "webm", "mov", "pdf",
        ],
        description="File extensions accepted for upload",
    )

    # ========================================
    # Derived Properties
    # ========================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == Environment.PRODUCTION

    @property
    def use_json_logs(self) -> bool:
        """Check if JSON logging should be used."""
        return self.log_format == LogFormat.JSON or self.is_production

    def is_staff(self, identity: str | None) -> bool:
        """Check whether a caller ID belongs to an editor."""
        return bool(identity) and identity in self.editors

    @field_validator("audio_extensions", "image_extensions", "allowed_upload_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lowercase extensions and drop leading dots."""
        return [ext.lower().lstrip(".") for ext in v]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    This function is cached to avoid re-reading environment variables
    on every access. Use dependency injection in FastAPI routes.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
