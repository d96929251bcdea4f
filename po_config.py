"""
Centralized configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    APP_NAME: str = "po-etl"
    APP_VERSION: str = "0.3.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_MAX_UPLOAD_SIZE_MB: int = 10

    # Product master
    PRODUCTS_FILE: str = "data/products.json"

    # Processing variants
    DEFAULT_PROCESSOR_TYPE: str = "sannote"
    CSV_FILENAME_PREFIX: str = "明細一覧"

    # Document AI
    GOOGLE_CLOUD_PROJECT_ID: Optional[str] = None
    GOOGLE_CLOUD_LOCATION: Optional[str] = None
    GOOGLE_CLOUD_PROCESSOR_ID: Optional[str] = None
    SANNOTE_PROCESSOR_ID: Optional[str] = None
    YAC_PROCESSOR_ID: Optional[str] = None
    # Inline service account JSON or a key file path
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None

    # Security
    ALLOWED_CONTENT_TYPES: list[str] = [
        "application/pdf",
        "image/png",
        "image/jpeg",
        "image/tiff",
        "image/gif",
        "image/bmp",
        "image/webp",
    ]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes."""
        return self.API_MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def processor_id_for(self, processor_type: str) -> Optional[str]:
        """Processor id of a variant, falling back to GOOGLE_CLOUD_PROCESSOR_ID."""
        per_variant = {
            "sannote": self.SANNOTE_PROCESSOR_ID,
            "yac": self.YAC_PROCESSOR_ID,
        }
        return per_variant.get(processor_type) or self.GOOGLE_CLOUD_PROCESSOR_ID

    @property
    def document_ai_configured(self) -> bool:
        return bool(
            self.GOOGLE_CLOUD_PROJECT_ID
            and self.GOOGLE_CLOUD_LOCATION
            and self.processor_id_for(self.DEFAULT_PROCESSOR_TYPE)
        )


# Global settings instance
settings = Settings()
