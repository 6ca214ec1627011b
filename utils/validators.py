import re

from core.errors import ValidationFailed


PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 6


def require_fields(message: str, *values) -> None:
    """Raise ValidationFailed if any value is missing or blank."""
    for value in values:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationFailed(message)


def validate_signup_fields(phone: str, name: str, password: str) -> None:
    errors = []
    if not PHONE_PATTERN.match(phone):
        errors.append("Please enter a valid phone number")
    if len(name.strip()) > NAME_MAX_LENGTH:
        errors.append(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    if errors:
        raise ValidationFailed(", ".join(errors))
