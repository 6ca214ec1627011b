"""
Typed failures of the onboarding flow.

Every operation raises one of these; `main.py` maps them to an HTTP response
with a single `{"error": message}` body.
"""


class OnboardingError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------- 400 ----------------
class ValidationFailed(OnboardingError):
    status_code = 400
    message = "Invalid request"


class NoSignupSession(OnboardingError):
    status_code = 400
    message = "No signup session found. Please start sign up again."


class OtpExpired(OnboardingError):
    status_code = 400
    message = "OTP has expired. Please request a new OTP."


class InvalidOtp(OnboardingError):
    status_code = 400
    message = "Invalid OTP"


class NoOtpIssued(OnboardingError):
    status_code = 400
    message = "No OTP found. Please request a new OTP."


# ---------------- 401 ----------------
class InvalidCredentials(OnboardingError):
    status_code = 401
    message = "Invalid credentials"


class PhoneNotVerified(OnboardingError):
    status_code = 401
    message = "Phone number not verified. Please complete signup process."


class NotAuthenticated(OnboardingError):
    status_code = 401
    message = "Invalid token"


# ---------------- 404 ----------------
class PhoneNotFound(OnboardingError):
    status_code = 404
    message = "User not found"


# ---------------- 409 ----------------
class PhoneAlreadyRegistered(OnboardingError):
    status_code = 409
    message = "User with this phone number already exists"


class DuplicatePhone(OnboardingError):
    """Unique index on phone rejected the insert (concurrent signup won)."""
    status_code = 409
    message = "User with this phone number already exists"
