"""Create users and tasks tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates `users` and `tasks` with the same UNIQUE / CHECK / FK
       constraints the ORM models declare.
How:   CHECK expressions come from taskboard.validation, so the migrated
       schema and `Base.metadata.create_all()` cannot drift apart. The date
       checks use CURRENT_DATE and are emitted on PostgreSQL only.

Rollback: downgrade() drops both tables (destructive: all data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

from taskboard.validation import (
    EMAIL_MAX_LENGTH,
    NICKNAME_MAX_LENGTH,
    email_check,
    non_empty_check,
    not_after_today_check,
    not_before_today_check,
    phone_check,
)

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("nickname", sa.String(NICKNAME_MAX_LENGTH), nullable=False),
        sa.Column("email", sa.String(EMAIL_MAX_LENGTH), nullable=False),
        sa.Column("tel", sa.String(13), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column(
            "image",
            sa.String(255),
            nullable=True,
            comment="Path relative to STATIC_ROOT",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("nickname", name=op.f("uq_users_nickname")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
        sa.UniqueConstraint("tel", name=op.f("uq_users_tel")),
        sa.CheckConstraint(non_empty_check("nickname"), name=op.f("ck_users_nickname")),
        sa.CheckConstraint(email_check("email"), name=op.f("ck_users_email")),
        sa.CheckConstraint(phone_check("tel"), name=op.f("ck_users_tel")),
        sa.CheckConstraint(
            not_after_today_check("birthday"), name=op.f("ck_users_birthday")
        ).ddl_if(dialect="postgresql"),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tasks")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_tasks_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(non_empty_check("body"), name=op.f("ck_tasks_body")),
        sa.CheckConstraint(
            not_before_today_check("deadline"), name=op.f("ck_tasks_deadline")
        ).ddl_if(dialect="postgresql"),
    )
    op.create_index(op.f("ix_tasks_user_id"), "tasks", ["user_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_tasks_user_id"), table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("users")
