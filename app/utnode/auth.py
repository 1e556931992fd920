from __future__ import annotations

import uuid

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for
from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from app.utnode.audit import record_event
from app.utnode.db import db_session
from app.utnode.errors import AuthFailure
from app.utnode.models import User

bp = Blueprint("auth", __name__)

SESSION_KEY = "user_id"

# Compared against when the email is unknown so both failure paths cost one hash check.
_DUMMY_HASH = generate_password_hash("not-a-real-password")


def authenticate(s: Session, email: str, password: str) -> User:
    """
    Verify an email/password pair against the users table.
    Raises AuthFailure without saying whether the email exists.
    """
    email = (email or "").strip().lower()
    user = s.scalars(select(User).where(User.email == email)).one_or_none()
    if user is None:
        check_password_hash(_DUMMY_HASH, password)
        raise AuthFailure()
    if not check_password_hash(user.password_hash, password):
        raise AuthFailure()
    return user


def serialize_identity(user: User) -> str:
    return str(user.id)


def deserialize_identity(s: Session, token: str | None) -> User | None:
    """Resolve a session token back to a user; None when it no longer resolves."""
    if not token:
        return None
    try:
        user_id = int(token)
    except (TypeError, ValueError):
        return None
    return s.get(User, user_id)


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    token = session.get(SESSION_KEY)
    if not token:
        g.current_user = None
        return

    try:
        user = deserialize_identity(db_session(), token)
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        user = None
    if user is None:
        session.pop(SESSION_KEY, None)
    g.current_user = user


@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("users/login.html", next=nxt)


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()

    s = db_session()
    try:
        user = authenticate(s, email, password)
    except AuthFailure as e:
        current_app.logger.warning("Login failed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        record_event(s, actor=None, action="auth.login_failed", entity_type="User", metadata={"email": email})
        s.commit()
        flash(e.message, "error")
        return redirect(url_for("auth.login_get"))

    # Rotate the CSRF token with the identity.
    session.pop("csrf_token", None)
    session[SESSION_KEY] = serialize_identity(user)
    g.current_user = user
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()
    flash("Logged in!", "success")
    # Optional "next" redirect (only allow local paths to avoid open redirects).
    if nxt.startswith("/") and not nxt.startswith("//"):
        return redirect(nxt)
    return redirect(url_for("routes.index"))


@bp.get("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop(SESSION_KEY, None)
    g.current_user = None
    flash("You have been logged out!", "success")
    return redirect(url_for("routes.index"))
