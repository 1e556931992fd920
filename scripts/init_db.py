import os
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.utnode.models import Base, User


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()


def create_tables(*, database_url: str) -> None:
    """Create missing tables directly from the models (dev/test shortcut for `alembic upgrade head`)."""
    engine = create_engine(database_url, future=True)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def seed_only(*, database_url: str | None = None) -> User | None:
    """
    Seed the admin user in an idempotent way.
    Does NOT overwrite an existing user's password. Skipped when ADMIN_EMAIL is unset.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or ""
    if not admin_email:
        print("ADMIN_EMAIL not set; skipping admin seed.", flush=True)
        return None
    if len(admin_password) < 5:
        raise RuntimeError("ADMIN_PASSWORD must be at least 5 characters long.")

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///utnode.db").strip()

    with _session_scope(db_url) as s:
        user = s.scalars(select(User).where(User.email == admin_email)).one_or_none()
        if user is None:
            now = datetime.utcnow()
            user = User(
                first_name="Admin",
                last_name=None,
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
                created_at=now,
                updated_at=now,
            )
            s.add(user)
            print(f"Created admin user {admin_email}", flush=True)
        else:
            print(f"Admin user {admin_email} already exists; password left unchanged.", flush=True)
        return user


def main() -> None:
    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///utnode.db").strip()
    create_tables(database_url=db_url)
    seed_only(database_url=db_url)


if __name__ == "__main__":
    main()
