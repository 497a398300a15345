import os
from pathlib import Path

from .version import get_version

BASE_DIR = Path(__file__).resolve().parent.parent
PACKAGE_DIR = Path(__file__).resolve().parent
INSTANCE_DIR = BASE_DIR / "instance"
INSTANCE_PATH = str(INSTANCE_DIR.resolve())


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    INSTANCE_PATH = INSTANCE_PATH
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL", f"sqlite:///{(INSTANCE_DIR / 'tracker.db').resolve()}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_HTTPONLY = True
    # Built-in partner backends ship inside the package; site-specific
    # backends placed in the local directory take precedence.
    PARTNER_BACKEND_PATH = os.getenv(
        "PARTNER_BACKEND_PATH", str((PACKAGE_DIR / "partners").resolve())
    )
    PARTNER_LOCAL_PATH = os.getenv(
        "PARTNER_LOCAL_PATH", str((INSTANCE_DIR / "partners").resolve())
    )
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "20 per minute")
    TRACKER_VERSION = get_version()
