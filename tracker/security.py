from __future__ import annotations

from typing import Optional

from flask_login import UserMixin  # type: ignore
from werkzeug.security import check_password_hash, generate_password_hash

PASSWORD_HASH_METHOD = "pbkdf2:sha256"


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty.")
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def verify_password(password_hash: Optional[str], candidate: str) -> bool:
    if not password_hash or not candidate:
        return False
    return check_password_hash(password_hash, candidate)


class LoginUser(UserMixin):
    """Session identity for a ``User`` row.

    Attributes not defined here fall through to the row, so templates can
    use ``current_user.name`` directly.
    """

    def __init__(self, user) -> None:
        self._user = user

    def get_id(self) -> str:
        return str(self._user.id)

    @property
    def model(self):
        return self._user

    @property
    def is_admin(self) -> bool:
        return bool(self._user.is_admin)

    @property
    def partner_code(self) -> Optional[str]:
        return self._user.partner_code

    @property
    def is_partner(self) -> bool:
        return bool(self._user.partner_code)

    def __getattr__(self, item):
        return getattr(self._user, item)

    def __repr__(self) -> str:
        return f"<LoginUser {self._user.email}>"
