"""User create/update validation: email format and minimum password length."""
import pytest
from sqlalchemy import func, select
from werkzeug.security import check_password_hash

from app.utnode import create_app
from app.utnode.db import session_scope
from app.utnode.models import Base, User

CSRF = "test-csrf-token"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return c


def _user_count(app) -> int:
    with session_scope(app) as s:
        return s.scalar(select(func.count()).select_from(User))


def _signup(client, **form):
    return client.post("/users/create", data={**form, "csrf_token": CSRF})


def test_short_password_redirects_to_new_without_creating(app, client):
    r = _signup(client, email="a@b.com", password="1234")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/users/new")
    assert _user_count(app) == 0

    r = client.get("/users/new")
    assert b"Password must be at least 5 characters long" in r.data


def test_valid_signup_creates_exactly_one_user(app, client):
    r = _signup(client, email="a@b.com", password="12345")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/users")

    with session_scope(app) as s:
        users = s.scalars(select(User)).all()
    assert len(users) == 1
    assert users[0].email == "a@b.com"
    assert users[0].password_hash != "12345"
    assert check_password_hash(users[0].password_hash, "12345")


def test_invalid_email_and_short_password_are_both_reported(app, client):
    r = _signup(client, email="not-an-email", password="1")
    assert r.headers["Location"].endswith("/users/new")

    page = client.get("/users/new").data
    assert b"Enter a valid email" in page
    assert b"Password must be at least 5 characters long" in page
    assert page.index(b"Enter a valid email") < page.index(b"Password must be")


def test_duplicate_email_is_a_validation_failure_not_a_crash(app, client):
    _signup(client, email="a@b.com", password="12345")
    r = _signup(client, email="A@B.com", password="67890")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/users/new")
    assert _user_count(app) == 1
    assert b"A user with that email already exists." in client.get("/users/new").data


@pytest.mark.parametrize(
    "form",
    [
        {"email": "broken", "password": "newpassword"},
        {"email": "new@b.com", "password": "123"},
    ],
)
def test_invalid_update_never_mutates_the_user(app, client, form):
    _signup(client, first_name="Ada", email="a@b.com", password="12345")
    with session_scope(app) as s:
        before = s.scalars(select(User)).one()

    r = client.put(f"/users/{before.id}/update", data={**form, "first_name": "Changed", "csrf_token": CSRF})
    assert r.status_code == 302
    assert r.headers["Location"].endswith(f"/users/{before.id}/edit")

    with session_scope(app) as s:
        after = s.scalars(select(User)).one()
    assert (after.first_name, after.email, after.password_hash, after.updated_at) == (
        before.first_name,
        before.email,
        before.password_hash,
        before.updated_at,
    )


def test_valid_update_rehashes_password(app, client):
    _signup(client, email="a@b.com", password="12345")
    with session_scope(app) as s:
        user = s.scalars(select(User)).one()

    r = client.put(
        f"/users/{user.id}/update",
        data={"first_name": "Ada", "last_name": "Lovelace", "email": "ada@b.com", "password": "abcdef", "csrf_token": CSRF},
    )
    assert r.status_code == 302
    assert r.headers["Location"].endswith(f"/users/{user.id}")

    with session_scope(app) as s:
        updated = s.get(User, user.id)
    assert updated.email == "ada@b.com"
    assert updated.full_name == "Ada Lovelace"
    assert check_password_hash(updated.password_hash, "abcdef")


def test_show_page_never_renders_the_password_hash(app, client):
    _signup(client, email="a@b.com", password="12345")
    with session_scope(app) as s:
        user = s.scalars(select(User)).one()
    r = client.get(f"/users/{user.id}")
    assert r.status_code == 200
    assert b"a@b.com" in r.data
    assert user.password_hash.encode() not in r.data
