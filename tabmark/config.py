import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def _database_uri() -> str:
    if os.environ.get("DATABASE_URL"):
        return os.environ["DATABASE_URL"]
    path = os.environ.get("DATABASE_PATH", str(BASE_DIR / "tabmark.db"))
    return f"sqlite:///{path}"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "default-secret-key")
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    STARTUP_MIGRATION_ENABLED = os.environ.get("STARTUP_MIGRATION_ENABLED", "1") == "1"
    FAVICON_FETCH_ENABLED = os.environ.get("FAVICON_FETCH_ENABLED", "1") == "1"
    FAVICON_SERVICE_URL = os.environ.get(
        "FAVICON_SERVICE_URL", "https://www.google.com/s2/favicons"
    )
    FAVICON_SIZE = int(os.environ.get("FAVICON_SIZE", "32"))
    FAVICON_TIMEOUT = float(os.environ.get("FAVICON_TIMEOUT", "5"))
    FAVICON_WORKERS = int(os.environ.get("FAVICON_WORKERS", "8"))
    DEFAULT_TAB_NAME = os.environ.get("DEFAULT_TAB_NAME", "Default")
    DEFAULT_TAB_COLOR = os.environ.get("DEFAULT_TAB_COLOR", "#3b82f6")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    STARTUP_MIGRATION_ENABLED = False
    FAVICON_FETCH_ENABLED = False
