"""
Configuration management using environment variables.
Holds the document store connection settings and logging options.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class StoreSettings(BaseSettings):
    """
    Connection string, database name and collection names for the book store.
    Built once at startup and never mutated afterwards.
    """

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017", validation_alias="MONGODB_URL")
    mongodb_database: str = Field(default="BookStoreDb", validation_alias="MONGODB_DATABASE")
    books_collection_name: str = Field(default="Books", validation_alias="BOOKS_COLLECTION_NAME")
    users_collection_name: str = Field(default="Users", validation_alias="USERS_COLLECTION_NAME")

    # Logging Configuration
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")

    # Development/Testing
    debug: bool = Field(default=False, validation_alias="DEBUG")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @field_validator('mongodb_database', 'books_collection_name', 'users_collection_name')
    @classmethod
    def validate_names(cls, v):
        """Database and collection names cannot be blank."""
        if not v.strip():
            raise ValueError('database and collection names cannot be empty')
        return v.strip()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
        frozen=True,
        populate_by_name=True,
    )

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None


# Global configuration instance
config = StoreSettings()
