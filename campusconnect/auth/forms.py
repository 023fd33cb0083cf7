"""Login and sign-up form validation."""
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError

from campusconnect.events.forms import FieldError

_email_adapter = TypeAdapter(EmailStr)


class CredentialsForm(BaseModel):
    """Raw email/password pair posted by the login, admin login and sign-up forms."""
    email: str = ""
    password: str = ""


def validate_credentials_form(form: CredentialsForm) -> list[FieldError]:
    errors: list[FieldError] = []
    try:
        _email_adapter.validate_python(form.email.strip())
    except ValidationError:
        errors.append(FieldError("email", "Please enter a valid email address."))
    if len(form.password) < 6:
        errors.append(FieldError("password", "Password must be at least 6 characters."))
    return errors
