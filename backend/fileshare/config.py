"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All config comes from env vars or .env file."""

    BLOB_STORE_TYPE: str = "local"  # "local" or "memory"
    BLOB_STORE_PATH: str = "./uploads"

    # Volatile by default: in-memory dict, or SQLAlchemy over in-memory SQLite
    METADATA_STORE_TYPE: str = "memory"  # "memory" or "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"

    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024
    MULTIPART_OVERHEAD_BYTES: int = 64 * 1024

    # Comma-separated mime types; empty accepts everything
    ALLOWED_MIME_TYPES: str = ""

    CORS_ORIGINS: str = "*"
    FRONTEND_DIR: str = ""

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
