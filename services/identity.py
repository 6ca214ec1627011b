"""Identity store: users keyed by their unique phone number."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import DuplicatePhone
from models.user import User


logger = logging.getLogger(__name__)


def get_user_by_phone(db: Session, phone: str) -> Optional[User]:
    return db.query(User).filter(User.phone == phone).first()


def get_user_by_id(db: Session, user_id) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def _phone_taken(db: Session, phone: str) -> bool:
    return db.query(User.id).filter(User.phone == phone).first() is not None


def create_user(
    db: Session,
    *,
    phone: str,
    name: str,
    hashed_password: str,
    is_phone_verified: bool = False,
    country: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> User:
    """
    Insert a new user. A unique-index violation on phone is raised as
    DuplicatePhone; any other integrity error propagates unchanged.
    """
    user = User(
        phone=phone,
        name=name.strip(),
        hashed_password=hashed_password,
        is_phone_verified=is_phone_verified,
        is_pan_verified=False,
        country=country,
        ip_address=ip_address,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if _phone_taken(db, phone):
            logger.info(f"Signup for {phone} lost the race to a concurrent signup")
            raise DuplicatePhone()
        raise
    db.refresh(user)
    return user


def set_pending_otp(db: Session, user: User, code: str, expires_at: datetime) -> None:
    db.query(User).filter(User.id == user.id).update(
        {User.otp_code: code, User.otp_expires_at: expires_at},
        synchronize_session=False,
    )
    db.commit()


def mark_phone_verified(db: Session, user: User) -> User:
    """Set the verified flag and clear the outstanding code in one UPDATE."""
    db.query(User).filter(User.id == user.id).update(
        {
            User.is_phone_verified: True,
            User.otp_code: None,
            User.otp_expires_at: None,
        },
        synchronize_session=False,
    )
    db.commit()
    db.refresh(user)
    return user


def record_signin(db: Session, user: User, *, last_login: datetime, country: Optional[str], ip_address: Optional[str]) -> User:
    db.query(User).filter(User.id == user.id).update(
        {
            User.last_login: last_login,
            User.country: country,
            User.ip_address: ip_address,
        },
        synchronize_session=False,
    )
    db.commit()
    db.refresh(user)
    return user
