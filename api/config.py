"""
Environment-aware configuration.
Signing secrets, cookie flags and media settings are read once here and
handed to the services as explicit config objects by create_app().
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

from utils.security import TokenConfig
from utils.media import MediaConfig

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///accounts.db")
    SQL_ECHO = _env_bool("SQL_ECHO")

    # Access and refresh tokens are signed with different secrets
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "accounts-api")
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret-change-me-0123456789")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret-change-me-0123456789")
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "864000")))

    SESSION_COOKIE_SECURE = False

    # Multipart uploads land here before being pushed to the media store
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(os.getcwd(), "public", "temp"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

    MEDIA_BUCKET = os.getenv("MEDIA_BUCKET", "accounts-media")
    MEDIA_REGION = os.getenv("MEDIA_REGION", "us-east-1")
    MEDIA_ENDPOINT_URL = os.getenv("MEDIA_ENDPOINT_URL") or None
    MEDIA_PUBLIC_URL = os.getenv("MEDIA_PUBLIC_URL") or None
    MEDIA_KEY_PREFIX = os.getenv("MEDIA_KEY_PREFIX", "uploads")


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = False
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef"
    MEDIA_BUCKET = "test-bucket"


class ProductionConfig(BaseConfig):
    DEBUG = False
    SESSION_COOKIE_SECURE = True


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def token_config(config) -> TokenConfig:
    return TokenConfig(
        access_secret=config["ACCESS_TOKEN_SECRET"],
        refresh_secret=config["REFRESH_TOKEN_SECRET"],
        access_expires=config["ACCESS_TOKEN_EXPIRES"],
        refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
        issuer=config.get("JWT_ISSUER", "accounts-api"),
    )


def media_config(config) -> MediaConfig:
    return MediaConfig(
        bucket=config["MEDIA_BUCKET"],
        region=config.get("MEDIA_REGION"),
        endpoint_url=config.get("MEDIA_ENDPOINT_URL"),
        public_url=config.get("MEDIA_PUBLIC_URL"),
        key_prefix=config.get("MEDIA_KEY_PREFIX", "uploads"),
    )
