import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, g, request
from werkzeug.exceptions import HTTPException

from app.marketplace.config import load_config
from app.marketplace.db import init_db, teardown_db_session
from app.marketplace.routes import bp as routes_bp
from app.marketplace.auth import bp as auth_bp, load_current_user
from app.marketplace.modules.orders.api import bp as orders_bp
from app.marketplace.modules.products.api import bp as products_bp
from app.marketplace.modules.users.api import bp as users_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(orders_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(users_bp)

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        if e.code == 400 and getattr(g, "missing_role", None):
            app.logger.warning(
                "Refused: missing_role=%s user_id=%s path=%s request_id=%s",
                g.missing_role,
                getattr(getattr(g, "current_user", None), "id", None),
                request.path,
                getattr(g, "request_id", None),
            )
        return {"error": e.name, "message": e.description}, e.code

    @app.errorhandler(Exception)
    def _err_500(e: Exception):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return {"error": "Internal Server Error", "message": "Unexpected error."}, 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
