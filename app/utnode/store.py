"""
Entity store: the five collection operations every resource goes through.

Writes flush but do not commit; the caller commits once its audit event is
queued so both land in one transaction. Driver errors are rolled back and
re-raised as the taxonomy in app.utnode.errors.
"""
from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Generator
from datetime import datetime
from typing import Any, Mapping, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, StatementError
from sqlalchemy.orm import Session

from app.utnode.errors import ConstraintViolation, RecordNotFound, StoreUnavailable
from app.utnode.models import Base

M = TypeVar("M", bound=Base)


@contextmanager
def _writing(s: Session, model: type[Base]) -> Generator[None, None, None]:
    try:
        yield
    except IntegrityError as e:
        s.rollback()
        raise ConstraintViolation(model.__tablename__, str(e.orig)) from e
    except OperationalError as e:
        s.rollback()
        raise StoreUnavailable(str(e.orig)) from e
    except (StatementError, OverflowError) as e:
        # DataError, or a value the driver cannot bind (sqlite3 raises OverflowError unwrapped).
        s.rollback()
        raise ConstraintViolation(model.__tablename__, str(getattr(e, "orig", e)), duplicate=False) from e


def _flush(s: Session, model: type[Base]) -> None:
    with _writing(s, model):
        s.flush()


def commit(s: Session, model: type[Base]) -> None:
    with _writing(s, model):
        s.commit()


def insert(s: Session, model: type[M], fields: Mapping[str, Any]) -> M:
    now = datetime.utcnow()
    record = model(**fields)
    record.created_at = now
    record.updated_at = now
    s.add(record)
    _flush(s, model)
    return record


def find_all(s: Session, model: type[M]) -> Sequence[M]:
    try:
        return s.scalars(select(model).order_by(model.id.asc())).all()
    except OperationalError as e:
        raise StoreUnavailable(str(e.orig)) from e


def find_by_id(s: Session, model: type[M], record_id: int) -> M:
    try:
        record = s.get(model, record_id)
    except OperationalError as e:
        raise StoreUnavailable(str(e.orig)) from e
    if record is None:
        raise RecordNotFound(model.__tablename__, record_id)
    return record


def update_by_id(s: Session, model: type[M], record_id: int, fields: Mapping[str, Any]) -> M:
    record = find_by_id(s, model, record_id)
    for name, value in fields.items():
        setattr(record, name, value)
    record.updated_at = datetime.utcnow()
    _flush(s, model)
    return record


def delete_by_id(s: Session, model: type[M], record_id: int) -> None:
    record = find_by_id(s, model, record_id)
    s.delete(record)
    _flush(s, model)
