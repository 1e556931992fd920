"""create users, audit trail and resource tables

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19 10:12:41.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create every table the application expects (idempotent)."""
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("first_name", sa.String(128), nullable=True),
            sa.Column("last_name", sa.String(128), nullable=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("zip_code", sa.Integer(), nullable=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            *_timestamps(),
        )

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("client_ip", sa.String(64), nullable=True),
            sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("actor_user_email", sa.String(320), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
        )
        op.create_index("idx_audit_events_action", "audit_events", ["action"])

    if "subscribers" not in existing_tables:
        op.create_table(
            "subscribers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("zip_code", sa.Integer(), nullable=True),
            *_timestamps(),
        )

    if "courses" not in existing_tables:
        op.create_table(
            "courses",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("max_students", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("cost", sa.Float(), nullable=False, server_default="0"),
            *_timestamps(),
        )

    if "talks" not in existing_tables:
        op.create_table(
            "talks",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False, unique=True),
            sa.Column("speaker", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="0"),
            *_timestamps(),
        )

    if "trains" not in existing_tables:
        op.create_table(
            "trains",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False, unique=True),
            sa.Column("departure", sa.String(255), nullable=False),
            sa.Column("destination", sa.String(255), nullable=False),
            sa.Column("fare", sa.Float(), nullable=False, server_default="0"),
            *_timestamps(),
        )

    if "games" not in existing_tables:
        op.create_table(
            "games",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("gameprice", sa.Float(), nullable=False, server_default="0"),
            *_timestamps(),
        )


def downgrade() -> None:
    for table in ("games", "trains", "talks", "courses", "subscribers", "audit_events", "users"):
        op.drop_table(table)
