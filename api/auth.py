from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
import logging

from api.deps import get_pending_store, otp_rate_limit
from core.config import otp_echo_enabled
from core.errors import InvalidCredentials, PhoneNotVerified
from core.security import create_access_token, create_refresh_token, verify_password
from db import get_db
from schemas.auth import (
    OtpRequest,
    OtpSentResponse,
    SigninRequest,
    SigninResponse,
    SignupOtpRequest,
    UserMessageResponse,
    UserOut,
    VerifyOtpRequest,
    VerifySignupOtpRequest,
)
from services import identity
from services.otp_issuer import IssuedOtp, issue_reverify_otp, issue_signup_otp
from services.otp_verifier import verify_reverify_otp, verify_signup_otp
from services.pending_signup import PendingSignupStore
from utils import geolocation
from utils import otp as otp_utils
from utils.sms import deliver_otp
from utils.validators import require_fields


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _otp_sent(issued: IssuedOtp, background_tasks: BackgroundTasks) -> OtpSentResponse:
    background_tasks.add_task(deliver_otp, issued.phone, issued.code, issued.expires_in_minutes)
    return OtpSentResponse(
        message="OTP sent successfully",
        expires_in_minutes=issued.expires_in_minutes,
        otp=issued.code if otp_echo_enabled() else None,
    )


# ---------------- Send Signup OTP ----------------
@router.post(
    "/send-signup-otp",
    response_model=OtpSentResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(otp_rate_limit)],
)
async def send_signup_otp(
    payload: SignupOtpRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: PendingSignupStore = Depends(get_pending_store),
):
    issued = await issue_signup_otp(
        db,
        store,
        payload.phone,
        payload.name,
        payload.password,
        client_ip=geolocation.get_client_ip(request),
    )
    return _otp_sent(issued, background_tasks)


# ---------------- Verify Signup OTP ----------------
@router.post(
    "/verify-signup-otp",
    response_model=UserMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def verify_signup(
    payload: VerifySignupOtpRequest,
    db: Session = Depends(get_db),
    store: PendingSignupStore = Depends(get_pending_store),
):
    user = await verify_signup_otp(
        db, store, payload.phone, payload.otp, payload.name, payload.password
    )
    return UserMessageResponse(
        message="Account created successfully",
        user=UserOut.model_validate(user),
    )


# ---------------- Send Re-verification OTP ----------------
@router.post(
    "/send-otp",
    response_model=OtpSentResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(otp_rate_limit)],
)
def send_otp(
    payload: OtpRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    issued = issue_reverify_otp(db, payload.phone)
    return _otp_sent(issued, background_tasks)


# ---------------- Verify Re-verification OTP ----------------
@router.post("/verify-otp", response_model=UserMessageResponse)
def verify_otp(payload: VerifyOtpRequest, db: Session = Depends(get_db)):
    user = verify_reverify_otp(db, payload.phone, payload.otp)
    return UserMessageResponse(
        message="OTP verified successfully",
        user=UserOut.model_validate(user),
    )


# ---------------- Sign In ----------------
@router.post("/signin", response_model=SigninResponse)
async def signin(
    payload: SigninRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    require_fields("Phone and password are required", payload.phone, payload.password)

    user = await run_in_threadpool(identity.get_user_by_phone, db, payload.phone)
    if not user:
        raise InvalidCredentials()

    if not user.is_phone_verified:
        raise PhoneNotVerified()

    password_ok = await run_in_threadpool(verify_password, payload.password, user.hashed_password)
    if not password_ok:
        raise InvalidCredentials()

    client_ip = geolocation.get_client_ip(request)
    location = await geolocation.lookup_country(client_ip)
    user = await run_in_threadpool(
        identity.record_signin,
        db,
        user,
        last_login=otp_utils.utc_now(),
        country=location.country,
        ip_address=client_ip,
    )

    logger.info(f"User {user.id} signed in")
    return SigninResponse(
        message="Sign in successful",
        user=UserOut.model_validate(user),
        access_token=create_access_token(data={"sub": str(user.id), "phone": user.phone}),
        refresh_token=create_refresh_token(data={"sub": str(user.id)}),
    )
