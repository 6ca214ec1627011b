"""
Staging area for signups awaiting OTP confirmation.

Entries live in Redis under `pending_signup:<phone>`, one per phone, so they
are shared by every app instance and survive restarts. The key TTL only
bounds how long abandoned entries linger; OTP expiry is decided by comparing
`otp_expires_at` at verification time.
"""
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from redis.asyncio import Redis

from core.config import PENDING_SIGNUP_TTL_SECONDS


logger = logging.getLogger(__name__)

KEY_TEMPLATE = "pending_signup:{phone}"


@dataclass
class PendingSignup:
    name: str
    password: str
    otp_code: str
    otp_expires_at: datetime
    country: Optional[str] = None
    ip_address: Optional[str] = None

    def to_json(self) -> str:
        data = asdict(self)
        data["otp_expires_at"] = self.otp_expires_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "PendingSignup":
        data = json.loads(raw)
        data["otp_expires_at"] = datetime.fromisoformat(data["otp_expires_at"])
        return cls(**data)


def pending_key(phone: str) -> str:
    return KEY_TEMPLATE.format(phone=phone)


class PendingSignupStore:

    def __init__(self, redis: Redis, ttl_seconds: int = PENDING_SIGNUP_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def put(self, phone: str, pending: PendingSignup) -> None:
        """Create or overwrite the entry for this phone."""
        await self.redis.set(pending_key(phone), pending.to_json(), ex=self.ttl_seconds)

    async def get(self, phone: str) -> Optional[PendingSignup]:
        raw = await self.redis.get(pending_key(phone))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return PendingSignup.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.error(f"Discarding unreadable pending signup for {phone}")
            await self.discard(phone)
            return None

    async def discard(self, phone: str) -> None:
        await self.redis.delete(pending_key(phone))
