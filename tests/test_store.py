"""Entity store operations against a real SQLite database."""
import pytest

from app.utnode import create_app, store
from app.utnode.db import session_scope
from app.utnode.errors import ConstraintViolation, RecordNotFound
from app.utnode.models import Base
from app.utnode.modules.game.models import Game


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    return app


def _insert_game(app, title="Chess", price=10.0) -> int:
    with session_scope(app) as s:
        game = store.insert(s, Game, {"title": title, "description": "Board game", "gameprice": price})
        return game.id


def test_insert_assigns_id_and_timestamps(app):
    game_id = _insert_game(app)
    with session_scope(app) as s:
        game = store.find_by_id(s, Game, game_id)
        assert game.title == "Chess"
        assert game.created_at == game.updated_at


def test_find_all_is_ordered_by_id(app):
    ids = [_insert_game(app, title=t) for t in ("B", "A", "C")]
    with session_scope(app) as s:
        assert [g.id for g in store.find_all(s, Game)] == ids


def test_duplicate_unique_field_raises_constraint_violation(app):
    _insert_game(app)
    with session_scope(app) as s:
        with pytest.raises(ConstraintViolation) as exc:
            store.insert(s, Game, {"title": "Chess", "description": "again", "gameprice": 0})
        assert exc.value.collection == "games"
        assert exc.value.duplicate is True
        # the session was rolled back and is still usable
        assert len(store.find_all(s, Game)) == 1


def test_update_by_id_changes_fields_and_touches_updated_at(app):
    game_id = _insert_game(app)
    with session_scope(app) as s:
        before = store.find_by_id(s, Game, game_id).updated_at
        game = store.update_by_id(s, Game, game_id, {"gameprice": 20.0})
        assert game.gameprice == 20.0
        assert game.updated_at >= before


@pytest.mark.parametrize("op", ["find_by_id", "update_by_id", "delete_by_id"])
def test_missing_ids_raise_record_not_found(app, op):
    with session_scope(app) as s:
        args = (s, Game, 404, {"title": "x"}) if op == "update_by_id" else (s, Game, 404)
        with pytest.raises(RecordNotFound) as exc:
            getattr(store, op)(*args)
    assert exc.value.record_id == 404


def test_delete_by_id_removes_record(app):
    game_id = _insert_game(app)
    with session_scope(app) as s:
        store.delete_by_id(s, Game, game_id)
    with session_scope(app) as s:
        assert store.find_all(s, Game) == []
        with pytest.raises(RecordNotFound):
            store.delete_by_id(s, Game, game_id)


def test_value_the_driver_cannot_store_is_not_reported_as_a_duplicate(app):
    from app.utnode.modules.courses.models import Course

    with session_scope(app) as s:
        with pytest.raises(ConstraintViolation) as exc:
            store.insert(s, Course, {"title": "Big", "description": "Huge", "max_students": 10**25, "cost": 0})
        assert exc.value.duplicate is False
        assert exc.value.collection == "courses"
        assert store.find_all(s, Course) == []


def test_request_session_is_shared_and_closed_at_teardown(app):
    from flask import g

    from app.utnode.db import db_session

    with app.test_request_context("/"):
        s = db_session()
        assert db_session() is s
        app.do_teardown_appcontext()
        assert "db_session" not in g
        assert db_session() is not s
