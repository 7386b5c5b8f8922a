"""Input checks shared by the managers."""

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError

_email_adapter = TypeAdapter(EmailStr)


def clean_email(email: str) -> str:
    """Strip an email address and reject it if malformed.

    Raises:
        ValidationError: If the address does not look like an email.
    """
    try:
        return _email_adapter.validate_python((email or "").strip())
    except PydanticValidationError as e:
        raise ValidationError("Please enter a valid email address.") from e
