import logging
import os

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv

from app.utnode.config import load_config
from app.utnode.db import init_db, teardown_db_session
from app.utnode.errors import RecordNotFound
from app.utnode.flashes import pending_flash_messages, restore_flash_messages
from app.utnode.middleware import MethodOverrideMiddleware
from app.utnode.routes import bp as routes_bp
from app.utnode.auth import bp as auth_bp, load_current_user
from app.utnode.crud import create_blueprint
from app.utnode.modules.users.service import resource as users_resource
from app.utnode.modules.subscribers.service import resource as subscribers_resource
from app.utnode.modules.courses.service import resource as courses_resource
from app.utnode.modules.talks.service import resource as talks_resource
from app.utnode.modules.trains.service import resource as trains_resource
from app.utnode.modules.game.service import resource as game_resource

RESOURCES = (
    users_resource,
    subscribers_resource,
    courses_resource,
    talks_resource,
    trains_resource,
    game_resource,
)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.wsgi_app = MethodOverrideMiddleware(app.wsgi_app)  # type: ignore[method-assign]

    from app.utnode.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_locals() -> dict:
        user = getattr(g, "current_user", None)
        return {
            "csrf_token": ensure_csrf_token(),
            "flash_messages": pending_flash_messages(),
            "logged_in": user is not None,
            "current_user": user,
        }

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d %H:%M") -> str:
        if value is None:
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Login/logout carry no token of their own.
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

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
    app.register_blueprint(auth_bp, url_prefix="/users")
    for resource in RESOURCES:
        app.register_blueprint(create_blueprint(resource), url_prefix=f"/{resource.slug}")

    # Registered after _csrf_guard, so they run in this order on every request.
    app.before_request(load_current_user)
    app.before_request(restore_flash_messages)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(RecordNotFound)
    def _err_record_not_found(e: RecordNotFound):  # type: ignore[no-redef]
        app.logger.info("%s (request_id=%s)", e, getattr(g, "request_id", None))
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        app.logger.exception("Unhandled 500 (request_id=%s)", rid)
        return render_template("errors/500.html"), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
