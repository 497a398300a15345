from pathlib import Path
from typing import Optional, Type

from flask import Flask
from flask_wtf.csrf import generate_csrf  # type: ignore

from .cli import register_cli_commands
from .config import Config
from .extensions import csrf, db, limiter, login_manager, migrate
from .routes.admin import admin_bp
from .routes.auth import auth_bp
from .routes.issues import issues_bp
from .services.partner_registry import init_partner_registry
from .version import __version__


def create_app(
    config_object: Optional[Type[Config]] = None,
    instance_path: Optional[Path] = None,
) -> Flask:
    if instance_path is not None:
        app = Flask(
            __name__, instance_path=str(instance_path), instance_relative_config=True
        )
    else:
        app = Flask(__name__, instance_relative_config=True)
    cfg = config_object or Config
    app.config.from_object(cfg)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    register_extensions(app)
    register_blueprints(app)
    register_cli_commands(app)

    registry = init_partner_registry(app)
    app.logger.info("Partner backends available: %s", registry.get_backend_list())

    app.config.setdefault("TRACKER_VERSION", __version__)

    return app


def register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    @app.context_processor
    def inject_csrf_token():
        return {
            "csrf_token": generate_csrf,
            "app_version": app.config.get("TRACKER_VERSION", __version__),
        }


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(issues_bp, url_prefix="/issues")
