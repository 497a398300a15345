from __future__ import annotations

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectMultipleField, SubmitField


class PartnerProjectsForm(FlaskForm):
    projects = SelectMultipleField(
        "Projects",
        choices=[],
        coerce=int,
        description="Projects this partner is enabled for.",
    )
    submit = SubmitField("Update Partner")
