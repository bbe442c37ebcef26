from pydantic_settings import BaseSettings
from typing import Optional
import os
import subprocess
from pathlib import Path
from dotenv import load_dotenv

# Determine environment before loading any dotenv files.
# In deployment set ENVIRONMENT=production; locally it defaults to dev.
_backend_dir = Path(__file__).resolve().parent.parent
_is_production = os.environ.get("ENVIRONMENT") == "production"

if _is_production:
    load_dotenv(_backend_dir / ".env.production", override=True)
else:
    load_dotenv(_backend_dir / ".env", override=False)


def _get_git_version() -> str:
    """Get version from BUILD_VERSION file, git tag, or fallback."""
    # 1. Check BUILD_VERSION file (written by deploy script)
    version_file = _backend_dir / "BUILD_VERSION"
    if version_file.exists():
        v = version_file.read_text().strip()
        if v:
            return v
    # 2. Try git describe (gets latest tag like "v1.0.3")
    try:
        tag = subprocess.check_output(
            ["git", "describe", "--tags", "--abbrev=0"],
            stderr=subprocess.DEVNULL,
            cwd=str(_backend_dir),
            timeout=5,
        ).decode().strip()
        if tag:
            return tag
    except (OSError, subprocess.SubprocessError):
        pass
    return "0.0.1"


class Settings(BaseSettings):
    APP_NAME: str = "bug-tracker"
    SETTING_VERSION: str = _get_git_version()
    API_PREFIX: str = "/api"

    # Database settings
    DB_HOST: Optional[str] = os.getenv("DB_HOST")
    DB_PORT: str = os.getenv("DB_PORT", "3306")
    DB_USER: Optional[str] = os.getenv("DB_USER")
    DB_PASSWORD: Optional[str] = os.getenv("DB_PASSWORD")
    DB_NAME: Optional[str] = os.getenv("DB_NAME")
    # Full URL override, e.g. sqlite+aiosqlite:///./bugtracker.db
    DATABASE_URL_OVERRIDE: Optional[str] = os.getenv("DATABASE_URL")

    # Authentication settings
    JWT_SECRET_KEY: Optional[str] = os.getenv("JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # CORS settings
    CORS_ORIGINS: list[str] = ["*"]  # In production, specify exact origins
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*", "Authorization"]
    CORS_EXPOSE_HEADERS: list[str] = ["Authorization", "X-Request-ID"]

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_FILENAME_PREFIX: str = "app"
    LOG_BACKUP_COUNT: int = 10
    LOG_FORMAT: str = "standard"  # Options: "standard" or "json"
    LOG_REQUEST_BODY: bool = False  # Whether to log request bodies
    LOG_RESPONSE_BODY: bool = False  # Whether to log response bodies
    LOG_SENSITIVE_FIELDS: list[str] = ["password", "token", "secret", "key", "authorization"]
    LOG_PERFORMANCE_THRESHOLD_MS: int = 500  # Log slow operations above this threshold

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = 'utf-8'
        extra = "ignore"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        if not self.JWT_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY not found in environment variables")
        if not self.DATABASE_URL_OVERRIDE and not (self.DB_HOST and self.DB_NAME):
            raise ValueError("Set DATABASE_URL or DB_HOST/DB_NAME in environment variables")


settings = Settings()
