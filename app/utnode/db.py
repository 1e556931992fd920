"""
Engine and session plumbing for the entity store.

One engine per app lives in `app.extensions`; request handlers share a single
session per request (on `g`), closed at app-context teardown.
"""
from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask, current_app, g
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def _engine_options(db_url: str) -> dict[str, object]:
    if db_url.startswith("sqlite"):
        # The dev server and the test client may touch one connection from several threads.
        return {"connect_args": {"check_same_thread": False}}
    # Postgres (required in production): recycle before typical idle cutoffs.
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 5,
        "max_overflow": 10,
    }


def init_db(app: Flask) -> None:
    engine = create_engine(app.config["DATABASE_URL"], **_engine_options(app.config["DATABASE_URL"]))
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
    app.logger.info("Entity store bound to %s", engine.url.render_as_string(hide_password=True))


def db_session() -> Session:
    """Session shared by every stage of the current request."""
    s: Session | None = getattr(g, "db_session", None)
    if s is None:
        s = current_app.extensions["sqlalchemy_sessionmaker"]()
        g.db_session = s
    return s


def teardown_db_session(_exc: BaseException | None) -> None:
    s: Session | None = g.pop("db_session", None)
    if s is not None:
        s.close()


@contextmanager
def session_scope(app: Flask) -> Generator[Session, None, None]:
    """Out-of-request unit of work: commits on success, rolls back on error."""
    s: Session = app.extensions["sqlalchemy_sessionmaker"]()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
