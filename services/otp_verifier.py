"""Check submitted codes and drive the next lifecycle transition."""
import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from core.errors import (
    InvalidOtp,
    NoOtpIssued,
    NoSignupSession,
    OtpExpired,
    PhoneAlreadyRegistered,
    PhoneNotFound,
)
from models.user import User
from services import identity
from services.pending_signup import PendingSignupStore
from services.signup_finalizer import finalize_signup
from utils import otp as otp_utils
from utils.validators import require_fields


logger = logging.getLogger(__name__)


async def verify_signup_otp(
    db: Session,
    store: PendingSignupStore,
    phone: str | None,
    code: str | None,
    name: str | None,
    password: str | None,
) -> User:
    # Staged name/password are what get persisted; these are presence checks
    require_fields("Phone, OTP, name, and password are required", phone, code, name, password)

    pending = await store.get(phone)
    if pending is None:
        raise NoSignupSession()

    if otp_utils.is_expired(pending.otp_expires_at):
        await store.discard(phone)
        raise OtpExpired("OTP has expired. Please start sign up again.")

    # Entry is kept on a wrong code so the user can retry until expiry
    if not otp_utils.codes_match(pending.otp_code, code):
        logger.info(f"Invalid sign-up OTP submitted for {phone}")
        raise InvalidOtp()

    if await run_in_threadpool(identity.get_user_by_phone, db, phone):
        await store.discard(phone)
        raise PhoneAlreadyRegistered()

    return await finalize_signup(db, store, phone, pending)


def verify_reverify_otp(db: Session, phone: str | None, code: str | None) -> User:
    require_fields("Phone number and OTP are required", phone, code)

    user = identity.get_user_by_phone(db, phone)
    if not user:
        raise PhoneNotFound()

    if not user.otp_code or not user.otp_expires_at:
        raise NoOtpIssued()

    if otp_utils.is_expired(user.otp_expires_at):
        raise OtpExpired()

    if not otp_utils.codes_match(user.otp_code, code):
        logger.info(f"Invalid OTP submitted for {phone}")
        raise InvalidOtp()

    return identity.mark_phone_verified(db, user)
