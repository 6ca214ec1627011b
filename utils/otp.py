import hmac
import secrets
from datetime import datetime, timedelta, timezone

from core.config import OTP_EXPIRY_MINUTES


OTP_MIN = 100000
OTP_MAX = 999999


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp_code() -> str:
    """
    6-digit code drawn uniformly from [100000, 999999].
    """
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def otp_expiry(minutes: int = OTP_EXPIRY_MINUTES) -> datetime:
    return utc_now() + timedelta(minutes=minutes)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    now = now or utc_now()
    return now > as_utc(expires_at)


def codes_match(stored: str, submitted: str) -> bool:
    """Exact string comparison, no trimming or numeric coercion."""
    return hmac.compare_digest(stored.encode("utf-8"), submitted.encode("utf-8"))
