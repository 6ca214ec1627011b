from schemas.auth import (  # noqa: F401
    OtpRequest,
    OtpSentResponse,
    SigninRequest,
    SigninResponse,
    SignupOtpRequest,
    UserMessageResponse,
    UserOut,
    UserProfileResponse,
    VerifyOtpRequest,
    VerifySignupOtpRequest,
)
