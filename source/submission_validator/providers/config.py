"""This module defines the configuration management for the application.

It uses Pydantic's BaseSettings to create a strongly-typed configuration
class that reads from environment variables and .env files. This ensures
all required configuration is present and valid at startup.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEBIBYTE = 1024 * 1024


class Config(BaseSettings):
    """A Pydantic model for managing application settings.

    It automatically loads configuration from environment variables and .env files.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = "INFO"

    GCP_PROJECT: str = "submission-validator"
    GCP_GCS_HOST: str | None = None
    GCP_GCS_BUCKET_SUBMISSIONS: str = "submissions"

    ARCHIVE_MAX_ENTRY_SIZE_BYTES: int = 50 * MEBIBYTE
    ARCHIVE_MAX_TOTAL_UNCOMPRESSED_BYTES: int = 200 * MEBIBYTE

    CSV_ENCODING: str = "utf-8-sig"

    OBJECT_BODY_TIMEOUT_SECONDS: float = 30.0

    @model_validator(mode="after")
    def check_archive_limits(self) -> "Config":
        """Ensures the per-entry archive limit never exceeds the total limit.

        Returns:
            The validated Config object.

        Raises:
            ValueError: If the per-entry limit is larger than the total limit.
        """
        if self.ARCHIVE_MAX_ENTRY_SIZE_BYTES > self.ARCHIVE_MAX_TOTAL_UNCOMPRESSED_BYTES:
            raise ValueError("ARCHIVE_MAX_ENTRY_SIZE_BYTES cannot exceed ARCHIVE_MAX_TOTAL_UNCOMPRESSED_BYTES")
        return self


class ConfigProvider:
    """A provider class that acts as a factory for the application's configuration.

    It does not hold state but provides a method to create fresh config instances.
    """

    @staticmethod
    def get_config() -> Config:
        """Factory method that instantiates and returns a new Config object.

        Calling this function will always create a new instance of the Config model,
        which forces Pydantic to reload and re-validate all settings from the
        current environment variables.

        Returns:
            A new, validated Config object.
        """
        return Config()
