import os
from dotenv import load_dotenv

# Load .env variables (make sure you have a .env file in project root)
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration shared across environments."""
    STORE_BACKEND = os.getenv("STORE_BACKEND", "redis")   # redis | memory
    KEY_PREFIX = os.getenv("KEY_PREFIX", "@MedicalApp")

    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB = int(os.getenv("REDIS_DB", 0))
    REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", "")
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", 5.0))

    # Clinic calendar
    CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "America/Sao_Paulo")
    OPENING_HOUR = int(os.getenv("OPENING_HOUR", 9))
    CLOSING_HOUR = int(os.getenv("CLOSING_HOUR", 18))   # last slot starts before this
    SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", 30))
    BOOKING_WINDOW_MONTHS = int(os.getenv("BOOKING_WINDOW_MONTHS", 3))
    ALLOW_TERMINAL_TRANSITIONS = _flag("ALLOW_TERMINAL_TRANSITIONS")

    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class DevConfig(Config):
    """Local development configuration"""
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProdConfig(Config):
    """Production configuration"""
    REDIS_HOST = os.getenv("REDIS_HOST", "redis")


class TestConfig(Config):
    """In-process store, nothing touches Redis"""
    STORE_BACKEND = "memory"
    KEY_PREFIX = "@MedicalAppTest"
    CLINIC_TIMEZONE = "UTC"
    ALLOW_TERMINAL_TRANSITIONS = False


def get_config():
    if os.getenv("APP_ENV") == "production":
        return ProdConfig
    return DevConfig
