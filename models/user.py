from sqlalchemy import Column, String, Boolean, DateTime, Uuid, CheckConstraint
from sqlalchemy.sql import func
import uuid
from .base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # otp_code and otp_expires_at are set and cleared together
        CheckConstraint(
            "(otp_code IS NULL) = (otp_expires_at IS NULL)",
            name="ck_users_otp_pair",
        ),
    )

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    name = Column(String(100), nullable=False)
    # "+" and up to 16 digits
    phone = Column(String(17), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    country = Column(String(100), nullable=True)
    ip_address = Column(String(45), nullable=True)

    is_phone_verified = Column(Boolean, default=False, nullable=False)
    is_pan_verified = Column(Boolean, default=False, nullable=False)

    # Outstanding re-verification code
    otp_code = Column(String(6), nullable=True)
    otp_expires_at = Column(DateTime(timezone=True), nullable=True)

    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
