import logging
from pathlib import Path
from typing import Any
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Runtime switches stored in the server_settings table.
# Values are strings; the loader infers bool/int from the default.
DEFAULT_SETTINGS: dict[str, str] = {
    "REGISTER_ENDPOINT_ENABLED": "true",
    "MEDIA_UPLOAD_ENABLED": "true",
}


class Settings(BaseSettings):
    """
    Application settings.
    Values are loaded from environment variables and/or a .env file.
    """

    # Core FastAPI settings
    PROJECT_NAME: str = "VidTube API"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False

    # JWT settings, access and refresh tokens are signed with distinct secrets
    ACCESS_TOKEN_SECRET: str  # No default, must be set in environment
    REFRESH_TOKEN_SECRET: str  # No default, must be set in environment
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 10  # 10 days

    # Cookie attributes for the token cookies
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "lax"

    # Database settings
    DB_USER: str = "your_db_user"
    DB_PASSWORD: str = "your_db_password"
    DB_HOST: str = "localhost"
    DB_PORT: str = "3306"
    DB_NAME: str = "vidtube"
    SQLALCHEMY_DATABASE_URL: str | None = Field(default=None, validate_default=True)

    # Database connection pool settings (ignored for SQLite)
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600  # In seconds
    DB_POOL_PRE_PING: bool = True
    DB_CONNECT_TIMEOUT: int = 10  # In seconds

    # CORS settings
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Media uploads
    MEDIA_DIR: Path = Path("./public/media")
    TEMP_UPLOAD_DIR: Path = Path("./public/temp")
    ALLOWED_EXTENSIONS: list[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp"]
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5 MB

    # Interval for reloading the server_settings table, 0 disables the reload task
    SETTINGS_RELOAD_INTERVAL_SECONDS: int = 300

    # Password policy for new passwords
    MIN_PASSWORD_LENGTH: int = 8
    REQUIRE_UPPERCASE: bool = True
    REQUIRE_LOWERCASE: bool = True
    REQUIRE_DIGIT: bool = True
    REQUIRE_SPECIAL_CHAR: bool = True
    SPECIAL_CHARACTERS_REGEX_PATTERN: str = r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?~`]"

    @field_validator('SQLALCHEMY_DATABASE_URL', mode='before')
    @classmethod
    def assemble_db_connection(cls, v: str | None, values) -> Any:
        if isinstance(v, str) and v:
            return v
        db_user = values.data.get('DB_USER')
        db_password = values.data.get('DB_PASSWORD')
        db_host = values.data.get('DB_HOST')
        db_port = values.data.get('DB_PORT')
        db_name = values.data.get('DB_NAME')
        if all([db_user, db_password, db_host, db_port, db_name]):
            return f"mysql+mysqlconnector://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        return None

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        case_sensitive = True


# Instantiate settings
settings = Settings()

# Log essential settings on startup, never the secrets
logger.info(f"Project Name: {settings.PROJECT_NAME}")
logger.info(f"API Prefix: {settings.API_V1_STR}")
logger.info(f"Debug Mode: {settings.DEBUG}")
if settings.SQLALCHEMY_DATABASE_URL:
    db_url_parts = settings.SQLALCHEMY_DATABASE_URL.split('@')
    logger.info(f"Database URL (host/db): {db_url_parts[1] if len(db_url_parts) > 1 else settings.SQLALCHEMY_DATABASE_URL}")
else:
    logger.info("Database URL: Not set or not all components provided")
logger.info(f"CORS Origins: {settings.CORS_ORIGINS}")
logger.info(f"Media directory: {settings.MEDIA_DIR}")
