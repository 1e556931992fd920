"""Flash messages survive exactly one follow-up request."""
import pytest

from app.utnode import create_app
from app.utnode.models import Base

CSRF = "test-csrf-token"


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    c = app.test_client()
    with c.session_transaction() as sess:
        sess["csrf_token"] = CSRF
    return c


def test_flash_visible_on_next_request_only(client):
    client.post("/game/create", data={"title": "", "description": "x", "csrf_token": CSRF})

    first = client.get("/game")
    second = client.get("/game")
    assert b"Title is required" in first.data
    assert b"Title is required" not in second.data


def test_flash_is_consumed_even_when_next_request_does_not_render_it(client):
    client.post("/game/create", data={"title": "", "description": "x", "csrf_token": CSRF})

    assert client.get("/health").status_code == 200  # skipped, keeps the message
    assert client.get("/game/999").status_code == 404  # consumes it
    assert b"Title is required" not in client.get("/game").data


def test_messages_keep_insertion_order_within_category(client):
    client.post("/users/create", data={"email": "bad", "password": "1", "csrf_token": CSRF})

    page = client.get("/users/new").data
    assert b"flash-error" in page
    assert page.index(b"Enter a valid email") < page.index(b"Password must be")


def test_success_message_follows_the_redirect(client):
    r = client.post(
        "/courses/create",
        data={"title": "Intro", "description": "d", "csrf_token": CSRF},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"flash-success" in r.data
    assert b"Course Intro created successfully!" in r.data
