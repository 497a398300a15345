"""Sign-in form."""

import re

from flask_wtf import FlaskForm  # type: ignore
from wtforms import BooleanField, PasswordField, StringField
from wtforms.validators import DataRequired, Length, ValidationError

_ADDRESS_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


def validate_address(form, field):
    if not _ADDRESS_RE.match(field.data or ""):
        raise ValidationError("Enter a valid email address.")


class LoginForm(FlaskForm):
    # Stored addresses are lower-case; see the create-admin command.
    email = StringField(
        "Email",
        filters=[normalize_email],
        validators=[DataRequired(), Length(max=255), validate_address],
    )
    password = PasswordField("Password", validators=[DataRequired()])
    remember = BooleanField("Keep me signed in")
