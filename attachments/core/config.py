"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (SECRET_KEY, ENCRYPTION_SALT) and the
UUID provider name are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from attachments.core.constants import LOCAL_DISK
from attachments.shared.utils.generators import UUID_PROVIDERS


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except secret_key and
    encryption_salt (signed URL key material), and s3_bucket when the
    default disk is remote.
    """

    # App
    app_name: str = "attachments"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Database (any SQLAlchemy async URL; empty disables the SQL repository)
    database_url: str = ""
    database_echo: bool = False

    # Security: key material for signed (temporary) download URLs
    secret_key: SecretStr = SecretStr("")
    encryption_salt: SecretStr = SecretStr("")

    # Storage
    default_disk: str = LOCAL_DISK
    storage_root: str = "/var/attachments/storage"
    storage_prefix: str = "attachments"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_public_url: str | None = None

    # Records
    uuid_provider: str = "uuid4"
    # Comma-separated attribute names accepted as options when binding to an owner.
    attach_attributes: str = "key,title,description,group"
    cascade_delete: bool = True

    # Cleanup: orphans untouched for this many minutes are swept
    cleanup_since_minutes: int = 1440

    # Download routes
    download_base_url: str = ""
    api_prefix: str = "/api/v1"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("uuid_provider")
    @classmethod
    def validate_uuid_provider(cls, v: str) -> str:
        """Reject unknown provider names at load time rather than at first use."""
        name = (v or "").strip().lower()
        if name not in UUID_PROVIDERS:
            raise ValueError(
                f"Unknown uuid_provider {v!r}. Supported: {', '.join(sorted(UUID_PROVIDERS))}"
            )
        return name

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level {v!r}")
        return level

    @field_validator("storage_prefix")
    @classmethod
    def normalize_storage_prefix(cls, v: str) -> str:
        return v.strip("/")

    @model_validator(mode="after")
    def validate_required_and_storage(self) -> "Settings":
        """Validate key material and remote storage configuration."""
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        if not self.encryption_salt.get_secret_value():
            raise ValueError(
                "ENCRYPTION_SALT is required. Generate with: openssl rand -hex 16."
            )
        if self.default_disk != LOCAL_DISK and not self.s3_bucket:
            raise ValueError(
                f"s3_bucket is required when default_disk is {self.default_disk!r}. "
                "Set S3_BUCKET environment variable or update .env file."
            )
        if self.cleanup_since_minutes < 0:
            raise ValueError("cleanup_since_minutes must be >= 0")
        return self

    @property
    def attach_attribute_list(self) -> list[str]:
        """Attribute whitelist for owner-binding options."""
        return [a.strip() for a in self.attach_attributes.split(",") if a.strip()]

    @property
    def download_url_root(self) -> str:
        """Base URL plus API prefix for the download routes."""
        return f"{self.download_base_url.rstrip('/')}{self.api_prefix.rstrip('/')}"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
