import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from fastapi_limiter.depends import RateLimiter
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from core.errors import NotAuthenticated
from core.security import decode_access_token, oauth2_scheme
from db import get_db, get_redis
from models.user import User
from services import identity
from services.pending_signup import PendingSignupStore


# Shared by both OTP issue endpoints; overridden in tests
otp_rate_limit = RateLimiter(times=5, seconds=60)


def get_pending_store(redis: Redis = Depends(get_redis)) -> PendingSignupStore:
    return PendingSignupStore(redis)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not credentials:
        raise NotAuthenticated("Not authenticated")

    payload = decode_access_token(credentials.credentials)

    user = identity.get_user_by_id(db, _parse_uuid(payload["sub"]))
    if not user:
        raise NotAuthenticated("User not found")
    return user


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError):
        raise NotAuthenticated()
