"""Extension singletons, bound to the app in ``create_app``."""

from flask_limiter import Limiter  # type: ignore
from flask_limiter.util import get_remote_address  # type: ignore
from flask_login import LoginManager  # type: ignore
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect  # type: ignore

db = SQLAlchemy()


class BaseModel(db.Model):  # type: ignore
    __abstract__ = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"


login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Please log in to work on issues."
login_manager.login_message_category = "warning"

csrf = CSRFProtect()

# SQLite cannot ALTER columns in place.
migrate = Migrate(render_as_batch=True)

# Storage comes from RATELIMIT_STORAGE_URI; only the login view is limited.
limiter = Limiter(key_func=get_remote_address)
