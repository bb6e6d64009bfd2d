"""
PDF Converter Configuration
Environment driven, with per-environment overrides
"""
import os
import tempfile
from functools import lru_cache


def database_uri() -> str:
    """Build the database URI from DATABASE_URL or the DB_* variables"""
    uri = os.environ.get("DATABASE_URL", "")
    if not uri:
        uri = "postgresql://{user}:{password}@{host}:{port}/{name}".format(
            user=os.environ.get("DB_USER") or "postgres",
            password=os.environ.get("DB_PASSWORD") or "postgres",
            host=os.environ.get("DB_HOST") or "localhost",
            port=os.environ.get("DB_PORT") or "5432",
            name=os.environ.get("DB_NAME") or "pdfconverter",
        )

    # Fix Render's postgres:// URL
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    return uri


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Database
    SQLALCHEMY_DATABASE_URI = database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Startup connection retry loop
    DB_CONNECT_RETRIES = int(os.environ.get("DB_CONNECT_RETRIES", "5"))
    DB_CONNECT_RETRY_DELAY = float(os.environ.get("DB_CONNECT_RETRY_DELAY", "6"))

    # File uploads (aggregate across all files in one request)
    MAX_CONTENT_LENGTH = 32 * 1024 * 1024  # 32MB

    # DOCX conversion through an external headless office suite
    DOCUMENT_CONVERSION_ENABLED = os.environ.get("DOCUMENT_CONVERSION_ENABLED", "1") == "1"
    DOCUMENT_CONVERTER = os.environ.get("DOCUMENT_CONVERTER", "libreoffice")
    CONVERSION_WORKDIR = os.environ.get("CONVERSION_WORKDIR") or tempfile.gettempdir()

    # Server
    PORT = int(os.environ.get("PORT", "19080"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    DB_CONNECT_RETRY_DELAY = 0


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


@lru_cache()
def get_config(env: str = None):
    """Get configuration by environment name"""
    env = env or os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
