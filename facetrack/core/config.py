"""Configuration settings for the face track service."""
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        IDENTITY_BACKEND: Which identity resolver to use ("descriptor" or "rekognition")
        MATCH_THRESHOLD: Strict cosine similarity required for a match (0-1)
        ADAPTIVE_THRESHOLD: Looser similarity accepted when adaptive matching is enabled
        QUANTIZATION_MULTIPLIER: Scale applied to L2-normalized descriptors before rounding
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",  # No prefix for environment variables
        env_nested_delimiter="__"  # Use double underscore for nested settings
    )

    # Core Settings
    PROJECT_NAME: str = "Face Track Service"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Identity Settings
    IDENTITY_BACKEND: Literal["descriptor", "rekognition"] = "descriptor"
    DESCRIPTOR_DIMENSION: int = 128
    QUANTIZATION_MULTIPLIER: int = 1000
    MATCH_THRESHOLD: float = 0.90
    ADAPTIVE_MATCHING_ENABLED: bool = True
    ADAPTIVE_THRESHOLD: float = 0.82
    TRACK_ID_LENGTH: int = 10
    MAX_DESCRIPTOR_SCANS: int = 5

    # Rekognition Settings
    REKOGNITION_COLLECTION_ID: str = "face-tracks-collection"
    REKOGNITION_SIMILARITY_FLOOR: float = 95.0
    RECOGNIZER_TIMEOUT: float = 10.0  # seconds per recognizer call

    # Stem Settings
    STEM_BASE_URL: str = "https://stems.example.com/stems"
    STEM_FILE_EXTENSION: str = "wav"
    STEM_CHECK_TIMEOUT: float = 5.0
    STEM_DOWNLOAD_TIMEOUT: float = 30.0
    STEM_DOWNLOAD_ATTEMPTS: int = 2
    STEM_DOWNLOAD_RETRY_DELAY: float = 0.5

    # Mixing Settings
    FFMPEG_BINARY: str = "ffmpeg"
    MIX_TIMEOUT: float = 120.0
    FOREGROUND_GAIN: float = 1.5
    BACKGROUND_GAIN: float = 0.6
    MIX_TEMP_DIR: Optional[str] = None  # None uses the system temp directory

    # AWS Settings
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    AWS_S3_BUCKET: str = "face-tracks"
    GENERATED_AUDIO_PREFIX: str = "generated"
    AUDIO_PUBLIC_BASE_URL: Optional[str] = None

    # Postgres Settings
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "facetrack"
    POSTGRES_POOL_SIZE: int = 5
    POSTGRES_MAX_OVERFLOW: int = 10
    POSTGRES_POOL_TIMEOUT: int = 30
    DATABASE_URL: Optional[str] = None

    @property
    def database_url(self) -> str:
        """Get the async SQLAlchemy database URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Email Settings
    EMAIL_HOST: str = ""
    EMAIL_PORT: int = 587
    EMAIL_SECURE: bool = False
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    EMAIL_FROM: str = ""
    EMAIL_TIMEOUT: float = 20.0

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

settings = Settings()
