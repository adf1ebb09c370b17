import os
from decouple import config


class Config(object):
    # Base directory for relative paths (e.g., SQLite DB)
    basedir = os.path.abspath(os.path.dirname(__file__))

    # SECRET_KEY is accessed via os.environ, falling back to a default via decouple
    SECRET_KEY = os.environ.get("SECRET_KEY", config("SECRET_KEY", default="S#perS3crEt_007"))

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = config("LOG_LEVEL", default="INFO")

    # Shop defaults
    APP_NAME = "Shop Accountant"
    APP_TIMEZONE = config("APP_TIMEZONE", default="Africa/Douala")
    DEFAULT_CURRENCY = config("DEFAULT_CURRENCY", default="FCFA")

    # Account created by `flask setup create-admin`
    ADMIN_USERNAME = config("ADMIN_USERNAME", default="admin1234")
    ADMIN_PASSWORD = config("ADMIN_PASSWORD", default="admin4321")

    # Where `flask setup backup` writes its JSON files
    BACKUP_DIR = config("BACKUP_DIR", default=os.path.join(basedir, "backups"))

    # Base configuration for database connection parameters, retrieved from OS environment
    DBUSER = os.environ.get("DBUSER")
    DBPASS = os.environ.get("DBPASS")
    DBHOST = os.environ.get("DBHOST")
    DBNAME = os.environ.get("DBNAME")


class ProductionConfig(Config):
    """Production deployment (Postgres with SSL)"""
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = (
        f"postgresql+psycopg2://{Config.DBUSER}:{Config.DBPASS}"
        f"@{Config.DBHOST}/{Config.DBNAME}?sslmode=require"
    )


class DevelopmentConfig(Config):
    """Local development with Docker Compose (Postgres without SSL)"""
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = (
        f"postgresql+psycopg2://{Config.DBUSER}:{Config.DBPASS}"
        f"@{Config.DBHOST}/{Config.DBNAME}"
    )


class DebugConfig(Config):
    """Simple local debugging (SQLite file next to the package)"""
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = (
        "sqlite:///" + os.path.join(Config.basedir, "db.sqlite3")
    )


class TestingConfig(Config):
    """Used by the test-suite; the URI is normally overridden per test."""
    TESTING = True
    DEBUG = False
    LOGIN_DISABLED = True
    LOG_LEVEL = "WARNING"

    SQLALCHEMY_DATABASE_URI = "sqlite://"


config_dict = {
    "Production": ProductionConfig,
    "Development": DevelopmentConfig,
    "Debug": DebugConfig,
    "Testing": TestingConfig,
}
