"""
Application Configuration
Loads settings from environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Members API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # AWS
    AWS_REGION: str = "ca-central-1"
    AWS_PROFILE: Optional[str] = None

    # DynamoDB tables
    DYNAMODB_ENDPOINT: str = ""  # e.g. http://localhost:8000 for DynamoDB Local
    MEMBERS_TABLE: str = "potp-member-v2"
    CLASSES_TABLE: str = "potp-classes-v2"
    RACES_TABLE: str = "potp-races-v2"
    AURAS_TABLE: str = "potp-auras"
    GROUPS_TABLE: str = "potp-member-groups-v2"
    SESSIONS_TABLE: str = "potp-idx-report-member"

    # DynamoDB indexes
    SESSIONS_BY_MEMBER_INDEX: str = "member-id-report-id-index"
    MEMBERS_BY_OWNER_INDEX: str = "owner-index"

    # Storage - S3 settings
    S3_BUCKET: str = "potp-gallery"
    S3_ENDPOINT: str = ""

    # Local storage fallback
    LOCAL_STORAGE_PATH: str = "./uploads"
    USE_LOCAL_STORAGE: bool = False

    # Image normalization
    IMAGE_WIDTH: int = 300
    IMAGE_HEIGHT: int = 500
    IMAGE_JPEG_QUALITY: int = 90
    MAX_VIDEO_BYTES: int = 1024 * 1024  # 1 MiB

    # Vector DB (Pinecone)
    PINECONE_API_KEY: str = ""
    PINECONE_INDEX_NAME: str = "potp-embeddings"
    PINECONE_NAMESPACE: str = ""
    LOCAL_VECTOR_PATH: str = ""  # empty keeps the local store in memory

    # Embeddings (Amazon Bedrock Titan)
    BEDROCK_REGION: str = "us-east-1"
    BEDROCK_EMBEDDING_MODEL: str = "amazon.titan-embed-text-v2:0"
    EMBEDDING_DIMENSIONS: int = 1024
    EMBEDDING_MAX_CHARS: int = 24000  # Titan v2 input limit
    EMBEDDING_METADATA_TEXT_CHARS: int = 3000

    # Batch sync pacing
    SYNC_CONCURRENCY: int = 1
    SYNC_INTERVAL_SECONDS: float = 0.1

    # CORS
    CORS_ALLOW_ORIGIN: str = "*"

    @field_validator("PINECONE_API_KEY", mode="before")
    @classmethod
    def strip_api_keys(cls, v):
        """Strip whitespace and newlines from API keys loaded from secrets."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("SYNC_CONCURRENCY")
    @classmethod
    def at_least_one_worker(cls, v):
        if v < 1:
            raise ValueError("SYNC_CONCURRENCY must be at least 1")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
