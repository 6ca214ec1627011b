from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel


# Request bodies keep every field optional so a missing field surfaces as
# the flow's own ValidationFailed message instead of a schema error.
class PhoneField(BaseModel):
    phone: Optional[str] = None

    @field_validator("phone")
    def strip_phone(cls, v):
        return v.strip() if v is not None else v


#---------------- Signup OTP ----------------#
class SignupOtpRequest(PhoneField):
    name: Optional[str] = None
    password: Optional[str] = None


class VerifySignupOtpRequest(PhoneField):
    otp: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None


#---------------- Re-verification OTP ----------------#
class OtpRequest(PhoneField):
    pass


class VerifyOtpRequest(PhoneField):
    otp: Optional[str] = None


#---------------- Sign in ----------------#
class SigninRequest(PhoneField):
    password: Optional[str] = None


#---------------- Responses ----------------#
class CamelModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class UserOut(CamelModel):
    id: UUID
    name: str
    phone: str
    country: Optional[str] = None
    ip_address: Optional[str] = None
    is_phone_verified: bool
    is_pan_verified: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class OtpSentResponse(CamelModel):
    message: str
    expires_in_minutes: int
    otp: Optional[str] = None  # development only


class UserMessageResponse(CamelModel):
    message: str
    user: UserOut


class UserProfileResponse(CamelModel):
    user: UserOut


class SigninResponse(CamelModel):
    message: str
    user: UserOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
