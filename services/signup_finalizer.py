"""Turn a confirmed pending signup into a durable user."""
import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from core.errors import DuplicatePhone
from core.security import hash_password
from models.user import User
from services import identity
from services.pending_signup import PendingSignup, PendingSignupStore


logger = logging.getLogger(__name__)


async def finalize_signup(
    db: Session,
    store: PendingSignupStore,
    phone: str,
    pending: PendingSignup,
) -> User:
    """
    Hash the staged password and insert the user as phone-verified.

    If a concurrent signup already created the phone, the staged entry is
    discarded and DuplicatePhone raised. Any other store failure leaves the
    entry in place so the same code can be submitted again before expiry.
    """
    hashed_password = await run_in_threadpool(hash_password, pending.password)

    try:
        user = await run_in_threadpool(
            identity.create_user,
            db,
            phone=phone,
            name=pending.name,
            hashed_password=hashed_password,
            is_phone_verified=True,
            country=pending.country,
            ip_address=pending.ip_address,
        )
    except DuplicatePhone:
        await store.discard(phone)
        raise

    await store.discard(phone)
    logger.info(f"Account created for {phone}")
    return user
