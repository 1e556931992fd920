import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash

from app.utnode.config import load_settings
from app.utnode.models import User
from scripts import init_db
from scripts.start import resolve_port


def test_seed_is_idempotent_and_keeps_password(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path/'seed.db'}"
    init_db.create_tables(database_url=db_url)

    monkeypatch.setenv("ADMIN_EMAIL", "Admin@Example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "first-pass")
    init_db.seed_only(database_url=db_url)

    monkeypatch.setenv("ADMIN_PASSWORD", "second-pass")
    init_db.seed_only(database_url=db_url)

    engine = create_engine(db_url)
    with Session(engine) as s:
        users = s.scalars(select(User)).all()
    engine.dispose()
    assert len(users) == 1
    assert users[0].email == "admin@example.com"
    assert check_password_hash(users[0].password_hash, "first-pass")


def test_seed_skips_without_admin_email(tmp_path, monkeypatch):
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    assert init_db.seed_only(database_url=f"sqlite:///{tmp_path/'seed.db'}") is None


def test_seed_rejects_short_password(tmp_path, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "admin@example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "1234")
    with pytest.raises(RuntimeError):
        init_db.seed_only(database_url=f"sqlite:///{tmp_path/'seed.db'}")


def test_port_defaults_to_3000():
    assert resolve_port(None) == "3000"
    assert resolve_port(" 8080 ") == "8080"
    with pytest.raises(SystemExit):
        resolve_port("http")


def test_settings_defaults(monkeypatch):
    for name in ("SECRET_KEY", "ENV", "DATABASE_URL", "PORT", "SESSION_LIFETIME_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    s = load_settings()
    assert s.port == 3000
    assert s.session_lifetime_seconds == 4000
    assert s.database_url == "sqlite:///utnode.db"


def test_settings_reject_non_integer_port(monkeypatch):
    monkeypatch.setenv("PORT", "abc")
    with pytest.raises(RuntimeError, match="PORT"):
        load_settings()
