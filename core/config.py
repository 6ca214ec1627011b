import os
from dotenv import load_dotenv


load_dotenv()  # Load environment variables from .env file


APP_ENV = os.getenv("APP_ENV", "production")
LOG_FILE = os.getenv("LOG_FILE")
SENTRY_DSN = os.getenv("SENTRY_DSN")

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# OTP window and staging
OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", 10))
PENDING_SIGNUP_TTL_SECONDS = max(
    int(os.getenv("PENDING_SIGNUP_TTL_SECONDS", 3600)),
    OTP_EXPIRY_MINUTES * 60 + 60,
)

# Geolocation
GEOLOCATION_TIMEOUT_SECONDS = float(os.getenv("GEOLOCATION_TIMEOUT_SECONDS", 5))
DEFAULT_LOCAL_COUNTRY = os.getenv("DEFAULT_LOCAL_COUNTRY", "India")
DEFAULT_LOCAL_COUNTRY_CODE = os.getenv("DEFAULT_LOCAL_COUNTRY_CODE", "IN")


def is_development() -> bool:
    # Unset or unrecognised values count as production
    return os.getenv("APP_ENV") == "development"


def otp_echo_enabled() -> bool:
    """
    Generated codes are echoed back in API responses only in development.
    Read on every call so a production process can never pick it up late.
    """
    return is_development()
