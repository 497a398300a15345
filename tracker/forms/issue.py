from __future__ import annotations

import re

from flask_wtf import FlaskForm  # type: ignore
from wtforms import (
    HiddenField,
    IntegerField,
    SelectField,
    SelectMultipleField,
    StringField,
    SubmitField,
    TextAreaField,
)
from wtforms.validators import DataRequired, Length, NumberRange, Optional, ValidationError

from ..constants import PHONE_CALL_TYPES, PHONE_NUMBER_TYPES

PHONE_NUMBER_REGEX = re.compile(r"^[0-9+()\-.\s/x]{3,32}$")
NO_CATEGORY = 0


def validate_phone_number(form, field):
    value = (field.data or "").strip()
    if not PHONE_NUMBER_REGEX.match(value):
        raise ValidationError("Enter a valid phone number.")


class PhoneEntryForm(FlaskForm):
    cat = HiddenField(default="add_phone")
    category_id = SelectField(
        "Category",
        choices=[(NO_CATEGORY, "-- none --")],
        coerce=int,
        default=NO_CATEGORY,
    )
    call_type = SelectField(
        "Type", choices=PHONE_CALL_TYPES, validators=[DataRequired()]
    )
    call_from_first_name = StringField(
        "Caller first name", validators=[Optional(), Length(max=64)]
    )
    call_from_last_name = StringField(
        "Caller last name", validators=[Optional(), Length(max=64)]
    )
    call_to_first_name = StringField(
        "Recipient first name", validators=[Optional(), Length(max=64)]
    )
    call_to_last_name = StringField(
        "Recipient last name", validators=[Optional(), Length(max=64)]
    )
    phone_number = StringField(
        "Phone number", validators=[DataRequired(), validate_phone_number]
    )
    phone_type = SelectField(
        "Phone type", choices=PHONE_NUMBER_TYPES, validators=[DataRequired()]
    )
    minutes_spent = IntegerField(
        "Time spent (minutes)",
        validators=[Optional(), NumberRange(min=0, max=24 * 60)],
        default=0,
    )
    description = TextAreaField(
        "Description", validators=[DataRequired(), Length(max=4000)]
    )
    submit = SubmitField("Save Phone Call")


class IssuePartnersForm(FlaskForm):
    partners = SelectMultipleField("Partners", choices=[], validate_choice=False)
    submit = SubmitField("Update Partners")
