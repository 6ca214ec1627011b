"""Issue one-time codes for new signups and for re-verifying existing users."""
import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from core.config import OTP_EXPIRY_MINUTES, is_development
from core.errors import PhoneAlreadyRegistered, PhoneNotFound
from services import identity
from services.pending_signup import PendingSignup, PendingSignupStore
from utils import geolocation
from utils import otp as otp_utils
from utils.validators import require_fields, validate_signup_fields


logger = logging.getLogger(__name__)


@dataclass
class IssuedOtp:
    phone: str
    code: str
    expires_at: datetime
    expires_in_minutes: int = OTP_EXPIRY_MINUTES


def _new_code(phone: str) -> IssuedOtp:
    return IssuedOtp(
        phone=phone,
        code=otp_utils.generate_otp_code(),
        expires_at=otp_utils.otp_expiry(OTP_EXPIRY_MINUTES),
    )


async def issue_signup_otp(
    db: Session,
    store: PendingSignupStore,
    phone: str | None,
    name: str | None,
    password: str | None,
    client_ip: str,
) -> IssuedOtp:
    require_fields("Phone, name, and password are required", phone, name, password)
    validate_signup_fields(phone, name, password)

    if await run_in_threadpool(identity.get_user_by_phone, db, phone):
        raise PhoneAlreadyRegistered()

    issued = _new_code(phone)
    location = await geolocation.lookup_country(client_ip)

    # Overwrites any earlier pending signup for this phone
    await store.put(
        phone,
        PendingSignup(
            name=name.strip(),
            password=password,
            otp_code=issued.code,
            otp_expires_at=issued.expires_at,
            country=location.country,
            ip_address=client_ip,
        ),
    )

    if is_development():
        logger.debug(f"Sign-up OTP for {phone}: {issued.code}")
    logger.info(f"Sign-up OTP issued for {phone} ({location.country})")
    return issued


def issue_reverify_otp(db: Session, phone: str | None) -> IssuedOtp:
    require_fields("Phone number is required", phone)

    user = identity.get_user_by_phone(db, phone)
    if not user:
        raise PhoneNotFound()

    issued = _new_code(phone)
    identity.set_pending_otp(db, user, issued.code, issued.expires_at)

    if is_development():
        logger.debug(f"OTP for {phone}: {issued.code}")
    logger.info(f"Re-verification OTP issued for {phone}")
    return issued
