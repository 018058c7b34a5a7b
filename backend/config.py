"""
Application settings.

All values are read from the environment (a local .env file is honoured)
so the same build runs unchanged in development, tests and production.
"""

from dotenv import load_dotenv
import os

load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Authentication
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

# Seed administrator created on first start when the users table is empty
ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrador")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@farmacia.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Alert thresholds
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
EXPIRY_WARNING_DAYS = int(os.getenv("EXPIRY_WARNING_DAYS", "30"))

# Business day and the daily alert job
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/Sao_Paulo")
ALERT_JOB_HOUR = int(os.getenv("ALERT_JOB_HOUR", "8"))
SCHEDULER_ENABLED = _get_bool("SCHEDULER_ENABLED", True)

# Medicine images
S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "pharmacy-medicine-images")
AWS_DEFAULT_REGION = os.getenv("AWS_DEFAULT_REGION", "sa-east-1")
